# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for configuration models."""

import pytest
from pydantic import ValidationError

from beskar.config.models import (
    BeskarConfig,
    CacheConfig,
    PluginConfig,
    RegistryConfig,
    StorageConfig,
)


class TestBeskarConfig:
    """Tests for the root document model."""

    def test_float_version(self):
        """Test YAML float versions are kept as strings."""
        config = BeskarConfig.model_validate({"version": 1.0})

        assert config.version == "1.0"

    def test_defaults(self):
        """Test omitted sections get defaults."""
        config = BeskarConfig.model_validate({"version": "1.0"})

        assert config.profiling is False
        assert config.cache.size == 0
        assert config.gossip.peers == []
        assert config.plugins == {}
        assert config.registry.storage.type() == ""

    def test_null_sections(self):
        """Test "section:" with no value is the same as omitting it."""
        config = BeskarConfig.model_validate({
            "version": "1.0",
            "cache": None,
            "gossip": {"peers": None},
        })

        assert config.cache.addr == ""
        assert config.gossip.peers == []

    def test_version_required(self):
        """Test the version field is mandatory."""
        with pytest.raises(ValidationError):
            BeskarConfig.model_validate({})

    def test_run_in_kubernetes(self, monkeypatch):
        """Test Kubernetes is detected from KUBERNETES_SERVICE_HOST."""
        config = BeskarConfig.model_validate({"version": "1.0"})

        assert config.run_in_kubernetes() is False

        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.96.0.1")
        assert config.run_in_kubernetes() is True


class TestCacheConfig:
    """Tests for the cache section."""

    def test_negative_size(self):
        """Test cache size cannot be negative."""
        with pytest.raises(ValidationError):
            CacheConfig(size=-1)

    def test_size_fits_uint32(self):
        """Test cache size is bounded to 32 bits."""
        assert CacheConfig(size=0xFFFFFFFF).size == 0xFFFFFFFF
        with pytest.raises(ValidationError):
            CacheConfig(size=0x100000000)


class TestPluginConfig:
    """Tests for plugin sections."""

    def test_mtls_aliases(self):
        """Test dashed mTLS keys map to attributes."""
        plugin = PluginConfig.model_validate({
            "prefix": "/artifacts/yum",
            "backends": [{
                "url": "https://yum:5200",
                "mtls": {"enabled": True, "ca-cert": "CERT", "ca-key": "KEY"},
            }],
        })

        mtls = plugin.backends[0].mtls
        assert mtls.enabled is True
        assert mtls.ca_cert == "CERT"
        assert mtls.ca_key == "KEY"


class TestRegistryConfig:
    """Tests for the embedded registry section."""

    def test_unknown_keys_kept(self):
        """Test registry keys Beskar does not model are preserved."""
        registry = RegistryConfig.model_validate({
            "http": {"addr": ":5100"},
            "log": {"level": "INFO", "fields": {"service": "beskar"}},
        })

        dumped = registry.model_dump()
        assert dumped["http"] == {"addr": ":5100"}
        assert dumped["log"]["fields"] == {"service": "beskar"}
        assert registry.log.level == "info"

    def test_invalid_loglevel(self):
        """Test the legacy log level is validated too."""
        with pytest.raises(ValidationError):
            RegistryConfig.model_validate({"loglevel": "verbose"})


class TestStorageConfig:
    """Tests for the storage section."""

    def test_driver_with_options(self):
        """Test option keys are not storage drivers."""
        storage = StorageConfig({
            "filesystem": {"rootdirectory": "/data"},
            "delete": {"enabled": True},
            "maintenance": {"uploadpurging": {"enabled": False}},
        })

        assert storage.drivers() == ["filesystem"]
        assert storage.type() == "filesystem"

    def test_no_driver(self):
        """Test a section with only options has no type."""
        storage = StorageConfig({"cache": {"blobdescriptor": "inmemory"}})

        assert storage.type() == ""
        assert storage.parameters() == {}

    def test_parameters_are_live(self):
        """Test updating parameters updates the section."""
        storage = StorageConfig({"inmemory": None})

        storage.parameters()["key"] = "value"

        assert storage.root["inmemory"] == {"key": "value"}

    def test_multiple_drivers(self):
        """Test more than one driver is rejected."""
        with pytest.raises(ValidationError, match="exactly one storage type"):
            StorageConfig.model_validate({"filesystem": {}, "s3": {}})
