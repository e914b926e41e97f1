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
Beskar - node bootstrap for a clustered OCI registry.

This package resolves the versioned ``beskar.yaml`` configuration document and
prepares everything a node needs to join (or found) the gossip membership
cluster: peer addresses, the shared secret, encoded node metadata and, for the
founding node, a freshly minted certificate authority.
"""

__version__ = "0.1.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from beskar.config import BeskarConfig, parse_beskar_config
from beskar.exceptions import BeskarError
from beskar.gossip import MembershipArgs, prepare

__all__ = [
    "BeskarConfig",
    "BeskarError",
    "MembershipArgs",
    "parse_beskar_config",
    "prepare",
]
