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
Gossip peer resolution.

Two discovery methods are supported:

1. Static: the ``gossip.peers`` list from beskar.yaml, used as-is
2. Kubernetes: Endpoints objects labelled ``go.ciq.dev/beskar-gossip=true``
   in the pod's namespace

Kubernetes discovery is retried with exponential backoff until it succeeds or
the caller's timeout elapses, since peers are often still starting when a new
pod comes up. Each Endpoints query is bounded by its own short deadline.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from beskar.config.models import KUBERNETES_SERVICE_HOST_ENV, BeskarConfig
from beskar.exceptions import DiscoveryError
from beskar.utils.logger import logger
from beskar.utils.netutil import join_host_port, route_get_source_address
from beskar.utils.retry import BackoffConfig, retry_notify

GOSSIP_LABEL_KEY = "go.ciq.dev/beskar-gossip"
GOSSIP_LABEL_SELECTOR = f"{GOSSIP_LABEL_KEY}=true"
NAMESPACE_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/namespace"

# Deadline of a single Endpoints query, independent of the overall budget.
QUERY_TIMEOUT = 5.0


class EndpointLister(Protocol):
    """Lists Kubernetes Endpoints objects matching a label selector."""

    def list_endpoints(
        self, namespace: str, label_selector: str, timeout: float
    ) -> Sequence[Any]:
        ...


class KubernetesEndpointLister:
    """EndpointLister backed by the in-cluster Kubernetes API."""

    def __init__(self, api: Optional[k8s_client.CoreV1Api] = None) -> None:
        self._api = api

    def connect(self) -> k8s_client.CoreV1Api:
        """Load the in-cluster configuration and build the API client once.

        Raises:
            DiscoveryError: If the pod has no usable service account configuration
        """
        if self._api is None:
            try:
                k8s_config.load_incluster_config()
            except ConfigException as e:
                raise DiscoveryError(f"while getting k8s cluster configuration: {e}") from e
            self._api = k8s_client.CoreV1Api()
        return self._api

    def list_endpoints(
        self, namespace: str, label_selector: str, timeout: float
    ) -> Sequence[Any]:
        try:
            result = self.connect().list_namespaced_endpoints(
                namespace,
                label_selector=label_selector,
                _request_timeout=timeout,
            )
        except ApiException as e:
            raise DiscoveryError(f"while listing endpoints: {e}", retry_after=1.0) from e
        except (HTTPError, OSError) as e:
            raise DiscoveryError(f"while listing endpoints: {e}") from e
        return result.items or []


@dataclass
class DiscoveryEnvironment:
    """Where and how this node discovers its peers.

    Attributes:
        orchestrated: True when running inside Kubernetes
        service_host: Kubernetes API service host, used to find the pod address
        namespace_file: File holding the pod's namespace
    """
    orchestrated: bool = False
    service_host: str = ""
    namespace_file: str = NAMESPACE_FILE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DiscoveryEnvironment":
        """Probe the process environment.

        Environment variables:
            KUBERNETES_SERVICE_HOST: Set by Kubernetes in every pod
        """
        environ = os.environ if environ is None else environ
        service_host = environ.get(KUBERNETES_SERVICE_HOST_ENV, "")
        return cls(orchestrated=service_host != "", service_host=service_host)


def read_namespace(path: str = NAMESPACE_FILE) -> str:
    """Read the pod namespace from the service account mount."""
    return Path(path).read_text().strip()


def collect_peers(endpoints: Sequence[Any], self_address: str) -> List[str]:
    """Build the peer list from gossip Endpoints objects.

    Every address of every subset is a gossip member; the first TCP port found
    is the gossip port shared by all of them. This node's own address is left
    out of the result.

    Raises:
        DiscoveryError: If no TCP port or no address was found
    """
    addresses: List[str] = []
    gossip_port = 0

    for endpoint in endpoints:
        for subset in endpoint.subsets or []:
            if not gossip_port:
                for port in subset.ports or []:
                    if (port.protocol or "TCP") == "TCP":
                        gossip_port = port.port
                        break
            for address in subset.addresses or []:
                addresses.append(address.ip)

    if not gossip_port:
        raise DiscoveryError("no gossip port found")
    if not addresses:
        raise DiscoveryError("no gossip peer found")

    return [
        join_host_port(ip, gossip_port)
        for ip in addresses
        if ip != self_address
    ]


async def resolve_peers(
    config: BeskarConfig,
    environment: DiscoveryEnvironment,
    lister: Optional[EndpointLister] = None,
    timeout: Optional[float] = 30.0,
    source_address: Callable[[str], str] = route_get_source_address,
    backoff: Optional[BackoffConfig] = None,
) -> List[str]:
    """Resolve the gossip peers this node should contact when joining.

    Args:
        config: Resolved configuration
        environment: Discovery mode and Kubernetes details
        lister: Endpoints source (defaults to the in-cluster API)
        timeout: Overall discovery budget in seconds, None for no limit
        source_address: Returns the local address routed towards a host
        backoff: Backoff settings; max_elapsed_time is replaced by timeout

    Returns:
        Peer addresses as "host:port", possibly empty

    Raises:
        DiscoveryError: If the in-cluster configuration is unusable, or if
            Kubernetes discovery still fails once the timeout elapses
        OSError: If the namespace file cannot be read
    """
    if not environment.orchestrated:
        logger.info(f"Using {len(config.gossip.peers)} static gossip peer(s)")
        return list(config.gossip.peers)

    namespace = read_namespace(environment.namespace_file)
    if lister is None:
        default_lister = KubernetesEndpointLister()
        # Configuration problems surface here, outside the retry loop.
        default_lister.connect()
        lister = default_lister

    pod_ip = source_address(environment.service_host)
    logger.info(f"Discovering gossip peers in namespace {namespace} (pod address {pod_ip})")

    async def list_peers() -> List[str]:
        try:
            endpoints = await asyncio.wait_for(
                asyncio.to_thread(
                    lister.list_endpoints, namespace, GOSSIP_LABEL_SELECTOR, QUERY_TIMEOUT
                ),
                timeout=QUERY_TIMEOUT,
            )
        except asyncio.TimeoutError as e:
            raise DiscoveryError(
                f"while listing endpoints: query timed out after {QUERY_TIMEOUT:g}s"
            ) from e
        return collect_peers(endpoints, pod_ip)

    def notify(err: BaseException, delay: float) -> None:
        logger.warning(f"Gossip peer discovery failed: {err}. Retrying in {delay:.2f}s...")

    budget = replace(backoff or BackoffConfig(), max_elapsed_time=timeout)
    peers = await retry_notify(
        list_peers, budget, notify=notify, retryable_exceptions=(DiscoveryError,)
    )
    logger.info(f"Discovered {len(peers)} gossip peer(s)")
    return peers
