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
Versioned configuration parser.

A document is parsed in four steps:

1. The YAML bytes are loaded into a plain mapping.
2. Environment overrides (``<PREFIX>_<PATH>=<value>``) are merged in.
3. The ``version`` key selects a registered VersionedParseInfo.
4. The mapping is validated into that version's model, then the version's
   conversion function turns it into the final configuration.

Supporting a new schema version means registering one more VersionedParseInfo;
existing versions are left untouched.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

import yaml
from pydantic import BaseModel, ValidationError

from beskar.exceptions import SchemaError
from beskar.utils.logger import logger

ConversionFunc = Callable[[BaseModel], BaseModel]


@dataclass
class VersionedParseInfo:
    """How to parse one schema version.

    Attributes:
        version: Version string as written in the document, e.g. "1.0"
        parse_as: Model the raw document is validated into
        conversion: Migration, defaulting and validation for this version;
            raises ConfigurationError subclasses on invalid input
    """

    version: str
    parse_as: Type[BaseModel]
    conversion: ConversionFunc


class Parser:
    """Parses configuration documents against registered schema versions.

    Example:
        >>> parser = Parser("beskar", [
        ...     VersionedParseInfo("1.0", BeskarConfig, convert_v1),
        ... ])
        >>> config = parser.parse(data)
    """

    def __init__(
        self,
        prefix: str,
        parse_infos: Iterable[VersionedParseInfo],
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize the parser.

        Args:
            prefix: Environment override prefix, upper-cased and suffixed with "_"
            parse_infos: Supported schema versions
            environ: Environment used for overrides (defaults to os.environ)
        """
        self.prefix = prefix.upper() + "_"
        self.environ = environ
        self._versions: Dict[str, VersionedParseInfo] = {}
        for info in parse_infos:
            self.register(info)

    def register(self, info: VersionedParseInfo) -> None:
        """Register a schema version."""
        if info.version in self._versions:
            raise ValueError(f"schema version {info.version} already registered")
        self._versions[info.version] = info

    @property
    def versions(self) -> List[str]:
        """Registered schema versions."""
        return list(self._versions)

    def parse(self, data: bytes) -> BaseModel:
        """Parse and convert a configuration document.

        Raises:
            SchemaError: If the document is malformed or its version unknown
            ConfigurationError: If the version's conversion rejects it
        """
        try:
            raw = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise SchemaError(f"malformed configuration: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise SchemaError(
                f"configuration must be a mapping, got {type(raw).__name__}"
            )

        environ = os.environ if self.environ is None else self.environ
        apply_env_overrides(raw, self.prefix, environ)

        version = raw.get("version")
        if version is None or version == "":
            raise SchemaError("configuration version is missing")
        if isinstance(version, float):
            version = repr(version)
        version = str(version)

        info = self._versions.get(version)
        if info is None:
            raise SchemaError(
                f"unsupported configuration version {version} "
                f"(supported: {', '.join(self.versions)})",
                version=version,
            )

        try:
            document = info.parse_as.model_validate(raw)
        except ValidationError as e:
            raise SchemaError(
                f"invalid configuration for version {version}: {e}",
                version=version,
            ) from e

        return info.conversion(document)


def _env_key(key: Any) -> str:
    return str(key).upper().replace("-", "_")


def _set_path(node: Dict[Any, Any], tokens: List[str], value: Any, name: str) -> None:
    # Longest match first so keys containing "_" (or "-") are reachable.
    for end in range(len(tokens), 0, -1):
        candidate = "_".join(tokens[:end])
        for key in list(node):
            if _env_key(key) != candidate:
                continue
            if end == len(tokens):
                node[key] = value
            else:
                child = node[key]
                if child is None:
                    child = {}
                    node[key] = child
                elif not isinstance(child, dict):
                    raise SchemaError(
                        f"invalid override {name}: {key} is a {type(child).__name__}, "
                        f"not a mapping"
                    )
                _set_path(child, tokens[end:], value, name)
            return

    key = tokens[0].lower()
    if len(tokens) == 1:
        node[key] = value
    else:
        child: Dict[Any, Any] = {}
        node[key] = child
        _set_path(child, tokens[1:], value, name)


def apply_env_overrides(
    raw: Dict[Any, Any],
    prefix: str,
    environ: Mapping[str, str],
) -> Dict[Any, Any]:
    """Merge ``<prefix><PATH>`` environment variables into a raw document.

    Path segments are separated by "_" and compared case-insensitively with
    "-" treated as "_". Values are parsed as YAML, so ``BESKAR_CACHE_SIZE=128``
    sets an integer and ``BESKAR_GOSSIP_PEERS='[a:1, b:2]'`` a list.

    Args:
        raw: Document mapping, updated in place
        prefix: Variable prefix including the trailing "_"
        environ: Environment to read

    Returns:
        The updated mapping

    Raises:
        SchemaError: If an override value is not valid YAML, or its path
            crosses a value that is not a mapping
    """
    for name in sorted(environ):
        if not name.startswith(prefix) or len(name) == len(prefix):
            continue
        tokens = [t for t in name[len(prefix):].split("_") if t]
        if not tokens:
            continue
        try:
            value = yaml.safe_load(environ[name])
        except yaml.YAMLError as e:
            raise SchemaError(f"invalid value for {name}: {e}") from e
        _set_path(raw, tokens, value, name)
        logger.debug(f"Applied configuration override from {name}")
    return raw
