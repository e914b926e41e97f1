# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for Beskar tests."""

from types import SimpleNamespace

import pytest


VALID_CONFIG = b"""
version: 1.0
cache:
  addr: 127.0.0.1:6000
  size: 0
gossip:
  addr: ":5002"
  key: c2VjcmV0LWtleQ==
  peers:
    - 10.0.0.1:5002
    - 10.0.0.2:5002
registry:
  loglevel: warn
  storage:
    filesystem:
      rootdirectory: /data
    delete:
      enabled: true
"""


@pytest.fixture
def config_bytes():
    """A valid version 1.0 document."""
    return VALID_CONFIG


@pytest.fixture
def config_dir(tmp_path):
    """A directory holding a valid beskar.yaml."""
    (tmp_path / "beskar.yaml").write_bytes(VALID_CONFIG)
    return tmp_path


@pytest.fixture
def make_endpoints():
    """Factory for Endpoints-like objects with a single subset."""

    def factory(ips, ports=(("TCP", 5002),)):
        return SimpleNamespace(
            subsets=[
                SimpleNamespace(
                    addresses=[SimpleNamespace(ip=ip) for ip in ips],
                    ports=[
                        SimpleNamespace(protocol=proto, port=port)
                        for proto, port in ports
                    ],
                )
            ]
        )

    return factory


@pytest.fixture(autouse=True)
def no_kubernetes(monkeypatch):
    """Keep tests off any real Kubernetes environment."""
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
