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
Pydantic models for the beskar.yaml configuration document.

The document has a small Beskar-specific part (cache, gossip and plugins)
and an embedded ``registry`` section. Only the registry keys Beskar acts on
are modelled (log, catalog and storage); every other registry key is kept
as-is so it can be handed to the registry unchanged.

Example:
    >>> from beskar.config.models import BeskarConfig
    >>> config = BeskarConfig.model_validate({
    ...     "version": "1.0",
    ...     "gossip": {"addr": ":5002", "key": "c2VjcmV0"},
    ...     "registry": {"storage": {"filesystem": {"rootdirectory": "/data"}}},
    ... })
    >>> config.registry.storage.type()
    'filesystem'
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

from beskar.utils.logger import LOG_LEVELS

# Keys under registry.storage that configure storage behaviour rather than
# naming a storage driver.
STORAGE_OPTION_KEYS = frozenset({"maintenance", "cache", "delete", "redirect", "tag"})

KUBERNETES_SERVICE_HOST_ENV = "KUBERNETES_SERVICE_HOST"


def _check_log_level(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    level = str(value).lower()
    if level not in LOG_LEVELS:
        raise ValueError(
            f"invalid log level {value!r}, must be one of {', '.join(LOG_LEVELS)}"
        )
    return level


class _Section(BaseModel):
    """Base for document sections: YAML ``key:`` with no value means defaults."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class CacheConfig(_Section):
    """
    Group cache settings.

    Attributes:
        addr: Listen address of the cache, ``host:port``
        size: Cache size in MB, 0 means "use the default"
    """

    addr: str = ""
    size: int = Field(default=0, ge=0, le=0xFFFFFFFF)


class GossipConfig(_Section):
    """
    Gossip membership settings.

    Attributes:
        addr: Bind address, ``host:port``; an empty host binds every interface
        key: Base64 encoded shared secret
        peers: Static peer list used outside Kubernetes
    """

    addr: str = ""
    key: str = ""
    peers: List[str] = Field(default_factory=list)


class PluginMTLS(_Section):
    """Mutual TLS settings for a plugin backend."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    ca_cert: str = Field(default="", alias="ca-cert")
    ca_key: str = Field(default="", alias="ca-key")


class PluginBackend(_Section):
    """A plugin backend endpoint."""

    url: str = ""
    mtls: PluginMTLS = Field(default_factory=PluginMTLS)


class PluginConfig(_Section):
    """
    A registry plugin.

    Attributes:
        prefix: URL path prefix routed to the plugin
        mediatype: Artifact media type handled by the plugin
        backends: Ordered plugin backends
    """

    prefix: str = ""
    mediatype: str = ""
    backends: List[PluginBackend] = Field(default_factory=list)


class LogConfig(_Section):
    """Registry logging section; unknown keys (fields, hooks...) are kept."""

    model_config = ConfigDict(extra="allow")

    level: Optional[str] = None
    formatter: str = ""

    @field_validator("level", mode="before")
    @classmethod
    def check_level(cls, value: Any) -> Optional[str]:
        return _check_log_level(value)


class CatalogConfig(_Section):
    """Registry catalog section."""

    model_config = ConfigDict(extra="allow")

    maxentries: int = 0


class StorageConfig(RootModel[Dict[str, Optional[Dict[str, Any]]]]):
    """
    Registry storage section: exactly one driver plus optional settings.

    Example document::

        storage:
          filesystem:
            rootdirectory: /var/lib/beskar
          delete:
            enabled: true
    """

    @model_validator(mode="after")
    def single_driver(self) -> "StorageConfig":
        drivers = self.drivers()
        if len(drivers) > 1:
            raise ValueError(
                f"must provide exactly one storage type. Provided: {', '.join(drivers)}"
            )
        return self

    def drivers(self) -> List[str]:
        """Storage driver names declared in the section."""
        return [key for key in self.root if key not in STORAGE_OPTION_KEYS]

    def type(self) -> str:
        """Return the storage driver name, or "" if none is declared."""
        drivers = self.drivers()
        return drivers[0] if drivers else ""

    def parameters(self) -> Dict[str, Any]:
        """Return the driver parameters, creating an empty mapping if needed.

        The returned mapping is the one stored in the section, so updates to it
        change the configuration.
        """
        driver = self.type()
        if not driver:
            return {}
        params = self.root.get(driver)
        if params is None:
            params = {}
            self.root[driver] = params
        return params


class RegistryConfig(_Section):
    """
    Embedded registry configuration.

    Attributes:
        log: Logging section
        loglevel: Legacy top-level log level, migrated into ``log.level``
        catalog: Catalog section
        storage: Storage section
    """

    model_config = ConfigDict(extra="allow")

    log: LogConfig = Field(default_factory=LogConfig)
    loglevel: Optional[str] = None
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    storage: StorageConfig = Field(default_factory=lambda: StorageConfig({}))

    @field_validator("loglevel", mode="before")
    @classmethod
    def check_loglevel(cls, value: Any) -> Optional[str]:
        return _check_log_level(value)


class BeskarConfig(_Section):
    """
    Root configuration document.

    Attributes:
        version: Schema version, selects the parser
        profiling: Enable profiling endpoints
        cache: Group cache settings
        gossip: Gossip membership settings
        plugins: Plugins keyed by name
        registry: Embedded registry configuration
    """

    version: str
    profiling: bool = False
    cache: CacheConfig = Field(default_factory=CacheConfig)
    gossip: GossipConfig = Field(default_factory=GossipConfig)
    plugins: Dict[str, PluginConfig] = Field(default_factory=dict)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)

    @field_validator("version", mode="before")
    @classmethod
    def version_as_string(cls, value: Any) -> Any:
        # "version: 1.0" is loaded by YAML as a float.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def run_in_kubernetes(self) -> bool:
        """Return True when the process runs inside a Kubernetes pod."""
        return os.environ.get(KUBERNETES_SERVICE_HOST_ENV, "") != ""
