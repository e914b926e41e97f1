#!/usr/bin/env python3
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

"""Beskar bootstrap CLI.

Resolves the node configuration and prepares its gossip membership, printing
what the node would join with. Useful to check a configuration or a Kubernetes
deployment before starting the registry.

Usage:
    beskar-bootstrap [--config-dir DIR] [--discovery-timeout SECONDS]

    Or with Python:
    python -m beskar.cli.bootstrap

Environment Variables:
    BESKAR_<PATH>=value      (overrides any beskar.yaml value, e.g. BESKAR_CACHE_SIZE=128)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from beskar import __version__
from beskar.config import parse_beskar_config
from beskar.exceptions import BeskarError
from beskar.gossip import BeskarMeta, prepare
from beskar.gossip.bootstrap import DEFAULT_DISCOVERY_TIMEOUT
from beskar.mtls import load_ca, unmarshal_ca_pem
from beskar.utils.logger import LOG_LEVELS, logger, set_log_level


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="beskar-bootstrap",
        description="Resolve the Beskar configuration and prepare gossip membership",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  beskar-bootstrap                              # /etc/beskar or embedded default
  beskar-bootstrap --config-dir ./conf          # conf/beskar.yaml must exist
  beskar-bootstrap --discovery-timeout 120      # wait longer for Kubernetes peers
        """,
    )
    parser.add_argument(
        "--config-dir",
        default="",
        help="Directory holding beskar.yaml (default: /etc/beskar with fallback)",
    )
    parser.add_argument(
        "--discovery-timeout",
        type=float,
        default=DEFAULT_DISCOVERY_TIMEOUT,
        help=f"Peer discovery budget in seconds (default: {DEFAULT_DISCOVERY_TIMEOUT:g})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=list(LOG_LEVELS),
        help="Log level (default: registry.log.level from the configuration)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def describe_ca(state: Optional[bytes]) -> str:
    """Summarize the CA minted by a founding node."""
    if state is None:
        return "(from the cluster)"
    cert, _ = load_ca(unmarshal_ca_pem(state))
    expires = cert.not_valid_after_utc.strftime("%Y-%m-%d")
    return f"{cert.subject.rfc4514_string()}, valid until {expires}"


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the bootstrap command."""
    args = build_parser().parse_args(argv)

    if args.log_level:
        set_log_level(args.log_level)

    try:
        config = parse_beskar_config(args.config_dir or None)
        if not args.log_level and config.registry.log.level:
            set_log_level(config.registry.log.level)

        member = asyncio.run(prepare(config, timeout=args.discovery_timeout))
        meta = BeskarMeta.decode(member.node_meta)
        ca = describe_ca(member.local_state)
    except (BeskarError, OSError) as e:
        logger.error(f"Bootstrap failed: {e}")
        return 1

    print()
    print(f"  Member ID:   {member.member_id}")
    print(f"  Bind:        {member.bind_address}")
    print(f"  Cache Port:  {meta.cache_port}")
    print(f"  Peers:       {', '.join(member.peers) or '(none)'}")
    print(f"  Role:        {'founder' if member.is_founder else 'joiner'}")
    print(f"  CA:          {ca}")
    print(f"  Storage:     {config.registry.storage.type()}")
    print(f"  Plugins:     {', '.join(sorted(config.plugins)) or '(none)'}")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
