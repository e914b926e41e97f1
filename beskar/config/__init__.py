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
Beskar configuration.

The configuration document is ``beskar.yaml``; see ``beskar.config.resolver``
for how it is located and ``beskar.config.models`` for its structure.
"""

from beskar.config.models import (
    BeskarConfig,
    CacheConfig,
    GossipConfig,
    PluginBackend,
    PluginConfig,
    PluginMTLS,
    RegistryConfig,
    StorageConfig,
)
from beskar.config.parser import Parser, VersionedParseInfo
from beskar.config.resolver import (
    BESKAR_CONFIG_FILE,
    DEFAULT_CONFIG_DIR,
    IN_MEMORY_ROOT_DIRECTORY,
    convert_v1,
    parse_beskar_config,
)

__all__ = [
    "BESKAR_CONFIG_FILE",
    "DEFAULT_CONFIG_DIR",
    "IN_MEMORY_ROOT_DIRECTORY",
    "BeskarConfig",
    "CacheConfig",
    "GossipConfig",
    "Parser",
    "PluginBackend",
    "PluginConfig",
    "PluginMTLS",
    "RegistryConfig",
    "StorageConfig",
    "VersionedParseInfo",
    "convert_v1",
    "parse_beskar_config",
]
