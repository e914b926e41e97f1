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
Beskar configuration resolution.

``parse_beskar_config`` locates ``beskar.yaml``, falls back to the embedded
default document when appropriate, and returns a validated BeskarConfig.

Lookup rules:
- No directory given: ``/etc/beskar/beskar.yaml``, or the embedded default if
  that file does not exist (an "in-memory" configuration).
- Directory given: ``<dir>/beskar.yaml`` must exist; there is no fallback.

Example:
    >>> config = parse_beskar_config()
    >>> config.cache.size
    64
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Mapping, Optional, Union

from beskar.config.models import BeskarConfig
from beskar.config.parser import Parser, VersionedParseInfo
from beskar.exceptions import ConfigNotFoundError, ConfigValidationError, SchemaError
from beskar.utils.logger import logger

DEFAULT_CONFIG_DIR = "/etc/beskar"
BESKAR_CONFIG_FILE = "beskar.yaml"
ENV_PREFIX = "beskar"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default" / BESKAR_CONFIG_FILE

# Root directory forced on the filesystem driver for in-memory configurations.
IN_MEMORY_ROOT_DIRECTORY = "/tmp/beskar-registry"

DEFAULT_LOG_LEVEL = "info"
DEFAULT_CATALOG_MAX_ENTRIES = 1000
DEFAULT_CACHE_SIZE = 64


def convert_v1(document: BeskarConfig, in_memory: bool = False) -> BeskarConfig:
    """Migrate, default and validate a version 1.0 document.

    Steps run in a fixed order and the first failure aborts:

    1. ``registry.log.level`` falls back to the legacy ``registry.loglevel``,
       then to "info"; the legacy field is always cleared.
    2. ``registry.catalog.maxentries`` defaults to 1000 when not positive.
    3. A storage driver is required. For in-memory configurations the
       filesystem driver's root directory is forced to a temporary path.
    4. ``cache.size`` defaults to 64 when zero.
    5. ``gossip.key`` is required.

    Args:
        document: Freshly parsed document, updated in place
        in_memory: True when the document is the embedded default

    Returns:
        The converted document

    Raises:
        ConfigValidationError: If storage or the gossip key is missing
    """
    if not isinstance(document, BeskarConfig):
        raise SchemaError(f"expected BeskarConfig, received {type(document).__name__}")

    registry = document.registry

    if not registry.log.level:
        registry.log.level = registry.loglevel or DEFAULT_LOG_LEVEL
    registry.loglevel = None

    if registry.catalog.maxentries <= 0:
        registry.catalog.maxentries = DEFAULT_CATALOG_MAX_ENTRIES

    storage_type = registry.storage.type()
    if not storage_type:
        raise ConfigValidationError("no storage configuration provided")
    if in_memory and storage_type == "filesystem":
        registry.storage.parameters()["rootdirectory"] = IN_MEMORY_ROOT_DIRECTORY

    if document.cache.size == 0:
        document.cache.size = DEFAULT_CACHE_SIZE

    if not document.gossip.key:
        raise ConfigValidationError("gossip key is missing")

    return document


def new_parser(
    in_memory: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> Parser:
    """Build the parser with every supported schema version registered."""
    return Parser(
        ENV_PREFIX,
        [
            VersionedParseInfo(
                version="1.0",
                parse_as=BeskarConfig,
                conversion=functools.partial(convert_v1, in_memory=in_memory),
            ),
        ],
        environ=environ,
    )


def parse_beskar_config(
    config_dir: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BeskarConfig:
    """Resolve the Beskar configuration.

    Args:
        config_dir: Directory holding beskar.yaml; None or "" for the default
            directory with fallback to the embedded document
        environ: Environment used for BESKAR_* overrides (defaults to os.environ)

    Returns:
        The validated configuration

    Raises:
        ConfigNotFoundError: If beskar.yaml is missing from config_dir
        SchemaError: If the document is malformed or its version unknown
        ConfigValidationError: If the document fails validation
        OSError: For any other read failure
    """
    custom_dir = bool(config_dir)
    directory = Path(config_dir) if custom_dir else Path(DEFAULT_CONFIG_DIR)
    filename = directory / BESKAR_CONFIG_FILE

    in_memory = False
    try:
        data = filename.read_bytes()
        logger.info(f"Loading configuration from {filename}")
    except FileNotFoundError as e:
        if custom_dir:
            raise ConfigNotFoundError(str(filename)) from e
        logger.info(f"{filename} not found, using embedded default configuration")
        data = DEFAULT_CONFIG_PATH.read_bytes()
        in_memory = True

    return new_parser(in_memory=in_memory, environ=environ).parse(data)
