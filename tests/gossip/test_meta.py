# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for gossip node metadata."""

import pytest

from beskar.exceptions import DecodeError
from beskar.gossip.meta import META_VERSION, BeskarMeta


class TestBeskarMeta:
    """Tests for the metadata wire format."""

    def test_encode_layout(self):
        """Test the version byte is followed by a big-endian port."""
        data = BeskarMeta(cache_port=5003).encode()

        assert data == bytes([META_VERSION, 0x13, 0x8B])

    def test_decode(self):
        """Test decoding recovers the cache port."""
        meta = BeskarMeta.decode(bytes([1, 0x17, 0x70]))

        assert meta.cache_port == 6000

    def test_decode_trailing_bytes(self):
        """Test fields appended by later versions are ignored."""
        meta = BeskarMeta.decode(bytes([1, 0x00, 0x50, 0xFF, 0xFF]))

        assert meta.cache_port == 80

    def test_decode_empty(self):
        """Test an empty payload is rejected."""
        with pytest.raises(DecodeError, match="empty"):
            BeskarMeta.decode(b"")

    def test_decode_truncated(self):
        """Test a payload shorter than the v1 layout is rejected."""
        with pytest.raises(DecodeError, match="too short"):
            BeskarMeta.decode(bytes([1, 0x17]))

    def test_decode_unknown_version(self):
        """Test unknown versions are rejected."""
        with pytest.raises(DecodeError, match="version 9"):
            BeskarMeta.decode(bytes([9, 0x17, 0x70]))

    def test_encode_out_of_range(self):
        """Test ports beyond 16 bits cannot be encoded."""
        with pytest.raises(DecodeError):
            BeskarMeta(cache_port=70000).encode()
