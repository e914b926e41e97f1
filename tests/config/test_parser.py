# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the versioned configuration parser."""

from unittest.mock import MagicMock

import pytest

from beskar.config.models import BeskarConfig
from beskar.config.parser import Parser, VersionedParseInfo, apply_env_overrides
from beskar.exceptions import SchemaError


@pytest.fixture
def conversion():
    """Conversion that returns the document unchanged."""
    return MagicMock(side_effect=lambda document: document)


@pytest.fixture
def parser(conversion):
    """Parser with version 1.0 registered and an empty environment."""
    return Parser(
        "beskar",
        [VersionedParseInfo("1.0", BeskarConfig, conversion)],
        environ={},
    )


class TestParser:
    """Tests for Parser.parse."""

    def test_parse_runs_conversion(self, parser, conversion, config_bytes):
        """Test the registered conversion receives the validated model."""
        config = parser.parse(config_bytes)

        conversion.assert_called_once()
        assert isinstance(config, BeskarConfig)
        assert config.version == "1.0"

    def test_string_version(self, parser):
        """Test a quoted version selects the same schema."""
        config = parser.parse(b'version: "1.0"\n')

        assert config.version == "1.0"

    def test_unknown_version(self, parser, conversion):
        """Test an unregistered version is rejected before conversion."""
        with pytest.raises(SchemaError) as exc_info:
            parser.parse(b"version: 3.1\n")

        assert exc_info.value.version == "3.1"
        assert "supported: 1.0" in str(exc_info.value)
        conversion.assert_not_called()

    def test_integer_version_is_not_float(self, parser):
        """Test "version: 1" does not match "1.0"."""
        with pytest.raises(SchemaError):
            parser.parse(b"version: 1\n")

    def test_missing_version(self, parser):
        """Test a document without version is rejected."""
        with pytest.raises(SchemaError, match="version is missing"):
            parser.parse(b"cache:\n  size: 1\n")

    def test_empty_document(self, parser):
        """Test an empty document has no version."""
        with pytest.raises(SchemaError, match="version is missing"):
            parser.parse(b"")

    def test_malformed_yaml(self, parser):
        """Test YAML syntax errors are schema errors."""
        with pytest.raises(SchemaError, match="malformed"):
            parser.parse(b"version: [1.0\n")

    def test_not_a_mapping(self, parser):
        """Test the top level must be a mapping."""
        with pytest.raises(SchemaError, match="mapping"):
            parser.parse(b"- a\n- b\n")

    def test_invalid_field_type(self, parser):
        """Test model validation failures are schema errors."""
        with pytest.raises(SchemaError) as exc_info:
            parser.parse(b"version: 1.0\ncache:\n  size: lots\n")

        assert exc_info.value.version == "1.0"

    def test_multiple_storage_drivers(self, parser):
        """Test more than one storage driver is rejected."""
        data = b"""
version: 1.0
registry:
  storage:
    filesystem:
      rootdirectory: /data
    s3:
      bucket: b
"""
        with pytest.raises(SchemaError, match="exactly one storage type"):
            parser.parse(data)

    def test_invalid_log_level(self, parser):
        """Test unknown registry log levels are rejected."""
        with pytest.raises(SchemaError, match="log level"):
            parser.parse(b"version: 1.0\nregistry:\n  log:\n    level: loud\n")

    def test_conversion_errors_propagate(self):
        """Test conversion errors reach the caller unchanged."""
        def reject(document):
            raise SchemaError("rejected")

        parser = Parser("beskar", [VersionedParseInfo("1.0", BeskarConfig, reject)], environ={})

        with pytest.raises(SchemaError, match="rejected"):
            parser.parse(b"version: 1.0\n")

    def test_environment_sets_version(self, conversion):
        """Test overrides are applied before the version lookup."""
        parser = Parser(
            "beskar",
            [VersionedParseInfo("1.0", BeskarConfig, conversion)],
            environ={"BESKAR_VERSION": "1.0"},
        )

        config = parser.parse(b"cache:\n  size: 1\n")

        assert config.version == "1.0"
        assert config.cache.size == 1


class TestRegistration:
    """Tests for version registration."""

    def test_register_new_version(self, parser):
        """Test additional versions can be registered."""
        parser.register(VersionedParseInfo("2.0", BeskarConfig, lambda d: d))

        assert parser.versions == ["1.0", "2.0"]

    def test_duplicate_version(self, parser):
        """Test registering a version twice fails."""
        with pytest.raises(ValueError):
            parser.register(VersionedParseInfo("1.0", BeskarConfig, lambda d: d))

    def test_prefix_normalized(self, parser):
        """Test the prefix is upper-cased with a trailing underscore."""
        assert parser.prefix == "BESKAR_"


class TestEnvOverrides:
    """Tests for BESKAR_* environment overrides."""

    def test_nested_value(self):
        """Test a nested scalar is replaced with a typed value."""
        raw = {"cache": {"addr": ":5003", "size": 64}}

        apply_env_overrides(raw, "BESKAR_", {"BESKAR_CACHE_SIZE": "128"})

        assert raw["cache"]["size"] == 128

    def test_list_value(self):
        """Test YAML flow sequences become lists."""
        raw = {"gossip": {"peers": []}}

        apply_env_overrides(raw, "BESKAR_", {"BESKAR_GOSSIP_PEERS": "[a:1, b:2]"})

        assert raw["gossip"]["peers"] == ["a:1", "b:2"]

    def test_creates_missing_sections(self):
        """Test unknown paths are created with lowercase keys."""
        raw = {}

        apply_env_overrides(raw, "BESKAR_", {"BESKAR_GOSSIP_KEY": "c2VjcmV0"})

        assert raw == {"gossip": {"key": "c2VjcmV0"}}

    def test_dashed_keys(self):
        """Test keys containing dashes are reachable."""
        raw = {"plugins": {"yum": {"backends": [], "ca-cert": "old"}}}

        apply_env_overrides(raw, "BESKAR_", {"BESKAR_PLUGINS_YUM_CA_CERT": "new"})

        assert raw["plugins"]["yum"]["ca-cert"] == "new"

    def test_ignores_other_variables(self):
        """Test unrelated variables and the bare prefix are ignored."""
        raw = {"cache": {"size": 64}}

        apply_env_overrides(raw, "BESKAR_", {"HOME": "/root", "BESKAR_": "x"})

        assert raw == {"cache": {"size": 64}}

    def test_fills_empty_section(self):
        """Test a section written without value becomes a mapping."""
        raw = {"registry": {"log": None}}

        apply_env_overrides(raw, "BESKAR_", {"BESKAR_REGISTRY_LOG_LEVEL": "warn"})

        assert raw["registry"]["log"] == {"level": "warn"}

    def test_path_through_list(self):
        """Test a path crossing a list is rejected and the list kept."""
        raw = {"gossip": {"peers": ["10.0.0.1:5002"]}}

        with pytest.raises(SchemaError, match="BESKAR_GOSSIP_PEERS_X"):
            apply_env_overrides(raw, "BESKAR_", {"BESKAR_GOSSIP_PEERS_X": "1"})

        assert raw["gossip"]["peers"] == ["10.0.0.1:5002"]

    def test_path_through_scalar(self):
        """Test a path crossing a scalar is rejected."""
        raw = {"registry": {"log": "text"}}

        with pytest.raises(SchemaError, match="not a mapping"):
            apply_env_overrides(raw, "BESKAR_", {"BESKAR_REGISTRY_LOG_LEVEL": "warn"})

    def test_parse_rejects_bad_path(self, parser):
        """Test Parser.parse reports override path errors."""
        parser.environ = {"BESKAR_GOSSIP_PEERS_0": "a:1"}

        with pytest.raises(SchemaError):
            parser.parse(b"version: 1.0\ngossip:\n  peers: [b:2]\n")

    def test_invalid_value(self):
        """Test override values must be valid YAML."""
        with pytest.raises(SchemaError, match="BESKAR_CACHE_SIZE"):
            apply_env_overrides({}, "BESKAR_", {"BESKAR_CACHE_SIZE": "[1"})
