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
Gossip membership bootstrap.

Example:
    >>> from beskar.config import parse_beskar_config
    >>> from beskar.gossip import prepare
    >>> config = parse_beskar_config()
    >>> args = await prepare(config, timeout=30.0)
    >>> args.bind_address
    '0.0.0.0:5002'
"""

from beskar.gossip.bootstrap import (
    MembershipArgs,
    get_bind_address,
    get_key,
    get_meta,
    get_state,
    prepare,
)
from beskar.gossip.meta import BeskarMeta
from beskar.gossip.peers import (
    GOSSIP_LABEL_KEY,
    DiscoveryEnvironment,
    EndpointLister,
    KubernetesEndpointLister,
    collect_peers,
    resolve_peers,
)

__all__ = [
    "GOSSIP_LABEL_KEY",
    "BeskarMeta",
    "DiscoveryEnvironment",
    "EndpointLister",
    "KubernetesEndpointLister",
    "MembershipArgs",
    "collect_peers",
    "get_bind_address",
    "get_key",
    "get_meta",
    "get_state",
    "prepare",
    "resolve_peers",
]
