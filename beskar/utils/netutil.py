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
Network address helpers.

``host:port`` strings are handled with bracketed IPv6 support, so
``[::1]:5002`` splits into ``("::1", "5002")`` and joining puts the brackets
back.
"""

from __future__ import annotations

import socket
from typing import Tuple, Union

from beskar.exceptions import DecodeError, DiscoveryError


def split_host_port(address: str) -> Tuple[str, str]:
    """Split ``host:port`` (or ``[host]:port``) into host and port.

    The host may be empty (``":5002"``), meaning every interface.

    Raises:
        DecodeError: If the address has no port or an unbracketed IPv6 host
    """
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise DecodeError(f"address {address}: missing ']' in address")
        host, rest = address[1:end], address[end + 1:]
        if not rest.startswith(":"):
            raise DecodeError(f"address {address}: missing port in address")
        port = rest[1:]
    else:
        host, sep, port = address.rpartition(":")
        if not sep:
            raise DecodeError(f"address {address}: missing port in address")
        if ":" in host:
            raise DecodeError(f"address {address}: too many colons in address")

    if ":" in port or "[" in port or "]" in port:
        raise DecodeError(f"address {address}: invalid port")
    return host, port


def join_host_port(host: str, port: Union[str, int]) -> str:
    """Join host and port, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def parse_port(port: str) -> int:
    """Parse a decimal TCP/UDP port number (0-65535).

    Raises:
        DecodeError: If the string is not a valid 16-bit unsigned integer
    """
    if not (port.isascii() and port.isdigit()):
        raise DecodeError(f"invalid port number: {port!r}")
    value = int(port)
    if value > 0xFFFF:
        raise DecodeError(f"port number out of range: {port!r}")
    return value


def route_get_source_address(target: str) -> str:
    """Return the local address the kernel would route from to reach target.

    Connecting a UDP socket sends no packet; it only selects the route and
    binds the local end, which is then read back.

    Raises:
        DiscoveryError: If no route to target exists
    """
    family = socket.AF_INET6 if ":" in target else socket.AF_INET
    try:
        with socket.socket(family, socket.SOCK_DGRAM) as s:
            s.connect((target, 80))
            return s.getsockname()[0]
    except OSError as e:
        raise DiscoveryError(f"while looking up source address for {target}: {e}") from e
