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

"""Logging configuration for Beskar.

Levels may be given as stdlib numbers or as the registry level names written
in beskar.yaml (``error``, ``warn``, ``info``, ``debug``).
"""

import logging
import sys
from typing import Optional, Union

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    try:
        return LOG_LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"unknown log level: {level!r}") from None


def setup_logger(
    name: str = "beskar",
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Setup and configure a logger for Beskar.

    Any handler installed by an earlier call is replaced, so calling this
    twice does not duplicate output.

    Args:
        name: Logger name
        level: Logging level or registry level name
        format_string: Custom format string for log messages

    Returns:
        Configured logger instance
    """
    numeric = _resolve_level(level)
    configured = logging.getLogger(name)
    configured.setLevel(numeric)
    configured.handlers.clear()

    # stdout is reserved for command output.
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    configured.addHandler(handler)

    return configured


def set_log_level(level: Union[int, str], name: str = "beskar") -> int:
    """
    Change the level of a logger and its handlers.

    Args:
        level: Logging level or one of "error", "warn", "info" or "debug"
        name: Logger name

    Returns:
        The stdlib logging level that was applied

    Raises:
        ValueError: If the level name is unknown
    """
    numeric = _resolve_level(level)
    target = logging.getLogger(name)
    target.setLevel(numeric)
    for handler in target.handlers:
        handler.setLevel(numeric)
    return numeric


logger = setup_logger()
