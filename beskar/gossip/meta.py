# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Node metadata advertised through the gossip membership protocol.

The payload travels in the membership protocol's per-node metadata slot, so it
uses a fixed big-endian binary layout:

    +---------+------------------+
    | version | cache port       |
    | 1 byte  | 2 bytes (uint16) |
    +---------+------------------+

Decoders accept trailing bytes so later versions can append fields.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from beskar.exceptions import DecodeError

META_VERSION = 1

_HEADER = struct.Struct("!B")
_V1 = struct.Struct("!BH")


@dataclass
class BeskarMeta:
    """Metadata this node advertises to the cluster.

    Attributes:
        cache_port: Port of the group cache listener
    """
    cache_port: int = 0

    def encode(self) -> bytes:
        """Serialize to the metadata wire format."""
        try:
            return _V1.pack(META_VERSION, self.cache_port)
        except struct.error as e:
            raise DecodeError(f"invalid cache port {self.cache_port}: {e}") from e

    @classmethod
    def decode(cls, data: bytes) -> "BeskarMeta":
        """Deserialize from the metadata wire format.

        Raises:
            DecodeError: If the payload is truncated or its version unknown
        """
        if len(data) < _HEADER.size:
            raise DecodeError("empty node metadata")
        (version,) = _HEADER.unpack_from(data)
        if version != META_VERSION:
            raise DecodeError(f"unsupported node metadata version {version}")
        if len(data) < _V1.size:
            raise DecodeError(
                f"node metadata too short: {len(data)} bytes, expected {_V1.size}"
            )
        _, cache_port = _V1.unpack_from(data)
        return cls(cache_port=cache_port)
