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

"""Custom exceptions for Beskar.

This module defines the exception hierarchy raised while bootstrapping a node.
All exceptions inherit from BeskarError so process startup can abort on a
single except clause.

Exception Hierarchy:
    BeskarError (base)
    ├── ConfigurationError - Configuration resolution errors
    │   ├── ConfigNotFoundError - Missing beskar.yaml in a custom directory
    │   ├── SchemaError - Unknown version or malformed document
    │   └── ConfigValidationError - Document failed version validation
    ├── DecodeError - Malformed secret key, address or metadata
    ├── DiscoveryError - Peer discovery failures
    └── CryptoError - Certificate authority generation failures

Plain OSError (other than a missing file) is never wrapped and reaches the
caller as-is.

Example:
    try:
        config = parse_beskar_config(args.config_dir)
        member_args = await prepare(config)
    except BeskarError as e:
        logger.error(f"Bootstrap failed: {e}")
        sys.exit(1)
"""

from __future__ import annotations

from typing import Optional


class BeskarError(Exception):
    """Base exception for all Beskar errors.

    Attributes:
        message: Error message describing what went wrong
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(BeskarError):
    """Raised when the configuration document cannot be resolved."""


class ConfigNotFoundError(ConfigurationError):
    """Raised when beskar.yaml is missing from an explicitly requested directory.

    No fallback to the embedded default happens once a caller opts into a
    custom configuration directory.
    """

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        """Initialize the not found error.

        Args:
            path: Configuration file path that was looked up
            message: Optional custom error message
        """
        super().__init__(message or f"configuration file not found: {path}")
        self.path = path


class SchemaError(ConfigurationError):
    """Raised for unknown schema versions or documents that do not parse."""

    def __init__(self, message: str, version: Optional[str] = None) -> None:
        super().__init__(message)
        self.version = version


class ConfigValidationError(ConfigurationError):
    """Raised when a parsed document fails its version's validation rules.

    Examples:
        - No storage configuration provided
        - Gossip key is missing
    """


class DecodeError(BeskarError):
    """Raised when a field cannot be decoded.

    Examples:
        - Gossip key is not valid base64
        - Cache or gossip address has no parsable port
        - Node metadata payload is truncated
    """


class DiscoveryError(BeskarError):
    """Raised when cluster peers cannot be discovered."""

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        """Initialize the discovery error.

        Args:
            message: Error message
            retry_after: Optional seconds to wait before retrying
        """
        super().__init__(message)
        self.retry_after = retry_after


class CryptoError(BeskarError):
    """Raised when the cluster certificate authority cannot be generated."""
