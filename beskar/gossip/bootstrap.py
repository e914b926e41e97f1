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
Gossip membership bootstrap for a Beskar node.

``prepare`` turns a resolved BeskarConfig into the arguments needed to
construct the gossip membership client:

- a fresh member identifier
- the peers to contact when joining
- the bind address
- the decoded shared secret
- the encoded node metadata
- for the founding node only, a new cluster CA as local state

A node founds the cluster when it has no peers or runs outside Kubernetes.
Any other node leaves the local state empty and receives the CA from an
existing member during the join handshake.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from beskar.config.models import BeskarConfig
from beskar.exceptions import DecodeError
from beskar.gossip.meta import BeskarMeta
from beskar.gossip.peers import DiscoveryEnvironment, EndpointLister, resolve_peers
from beskar.mtls import add_years, encode_ca_pem, generate_ca, marshal_ca_pem
from beskar.utils.logger import logger
from beskar.utils.netutil import join_host_port, parse_port, route_get_source_address, split_host_port

CA_COMMON_NAME = "beskar"
CA_VALIDITY_YEARS = 10

DEFAULT_DISCOVERY_TIMEOUT = 30.0


@dataclass
class MembershipArgs:
    """Construction arguments for the gossip membership client.

    Attributes:
        member_id: Unique identifier of this member
        peers: Addresses ("host:port") to contact when joining
        bind_address: Gossip listen address ("host:port")
        secret_key: Shared secret encrypting gossip traffic
        node_meta: Encoded BeskarMeta
        local_state: Marshalled CAPEM bundle, only set on the founding node
    """
    member_id: str
    peers: List[str] = field(default_factory=list)
    bind_address: str = ""
    secret_key: bytes = field(default=b"", repr=False)
    node_meta: bytes = b""
    local_state: Optional[bytes] = field(default=None, repr=False)

    @property
    def is_founder(self) -> bool:
        """True when this node minted the cluster state."""
        return self.local_state is not None


def get_key(config: BeskarConfig) -> bytes:
    """Decode the base64 gossip secret.

    Raises:
        DecodeError: If the key is not valid base64 or decodes to nothing
    """
    try:
        key = base64.b64decode(config.gossip.key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"while decoding gossip key: {e}") from e
    if not key:
        raise DecodeError("gossip key is empty")
    return key


def get_meta(config: BeskarConfig) -> bytes:
    """Encode this node's metadata from the cache address.

    Raises:
        DecodeError: If the cache address has no valid port
    """
    _, port = split_host_port(config.cache.addr)
    try:
        cache_port = parse_port(port)
    except DecodeError as e:
        raise DecodeError(f"while parsing cache address: {e}") from e

    return BeskarMeta(cache_port=cache_port).encode()


def get_state(num_peers: int, orchestrated: bool) -> Optional[bytes]:
    """Mint the cluster CA if this node founds the cluster.

    Returns:
        The marshalled CAPEM bundle, or None for a joining node

    Raises:
        CryptoError: If the CA cannot be generated
    """
    if num_peers == 0 or not orchestrated:
        not_after = add_years(datetime.now(timezone.utc), CA_VALIDITY_YEARS)
        cert, key = generate_ca(CA_COMMON_NAME, not_after)
        return marshal_ca_pem(encode_ca_pem(cert, key))
    return None


def get_bind_address(config: BeskarConfig) -> str:
    """Return the gossip bind address, binding every interface if no host is set.

    Raises:
        DecodeError: If the gossip address has no port
    """
    host, port = split_host_port(config.gossip.addr)
    if not host:
        host = "0.0.0.0"
    return join_host_port(host, port)


async def prepare(
    config: BeskarConfig,
    lister: Optional[EndpointLister] = None,
    timeout: Optional[float] = DEFAULT_DISCOVERY_TIMEOUT,
    environment: Optional[DiscoveryEnvironment] = None,
    source_address: Callable[[str], str] = route_get_source_address,
) -> MembershipArgs:
    """Prepare the gossip membership client arguments.

    Args:
        config: Resolved configuration
        lister: Kubernetes Endpoints source (defaults to the in-cluster API)
        timeout: Peer discovery budget in seconds
        environment: Discovery mode (defaults to probing the environment)
        source_address: Returns the local address routed towards a host

    Returns:
        MembershipArgs for the membership client

    Raises:
        BeskarError: If any bootstrap step fails
    """
    if environment is None:
        environment = DiscoveryEnvironment.from_env()

    member_id = str(uuid.uuid4())

    peers = await resolve_peers(
        config,
        environment,
        lister=lister,
        timeout=timeout,
        source_address=source_address,
    )
    key = get_key(config)
    meta = get_meta(config)
    state = get_state(len(peers), environment.orchestrated)
    bind_address = get_bind_address(config)

    if state is not None:
        logger.info(f"Member {member_id} founds the cluster with a new CA")
    else:
        logger.info(f"Member {member_id} joins {len(peers)} peer(s), CA comes from the cluster")

    return MembershipArgs(
        member_id=member_id,
        peers=peers,
        bind_address=bind_address,
        secret_key=key,
        node_meta=meta,
        local_state=state,
    )
