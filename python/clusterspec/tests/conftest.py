"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict

import pytest

from clusterspec.dns.provider import StaticHostedZoneProvider
from clusterspec.models.dns import HostedZone
from clusterspec.models.options import CreateClusterOptions
from clusterspec.registry.registry import Registry
from clusterspec.registry.storage import MemoryObjectStore

FIXED_TIME = datetime(2017, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock pinned to 2017-01-01T00:00:00Z."""
    return lambda: FIXED_TIME


@pytest.fixture
def example_zone() -> HostedZone:
    return HostedZone(name="example.com.", id="/hostedzone/Z1AFAKE1ZON3YO")


@pytest.fixture
def dns_provider(example_zone: HostedZone) -> StaticHostedZoneProvider:
    """Provider knowing only example.com."""
    return StaticHostedZoneProvider([example_zone])


@pytest.fixture
def memory_store() -> MemoryObjectStore:
    return MemoryObjectStore("memfs://tests")


@pytest.fixture
def registry(
    memory_store: MemoryObjectStore, fixed_clock: Callable[[], datetime]
) -> Registry:
    """Empty in-memory registry with pinned creation timestamps."""
    return Registry(memory_store, clock=fixed_clock)


@pytest.fixture
def make_options() -> Callable[..., CreateClusterOptions]:
    """Factory building options for 'minimal.example.com' with overrides."""

    def _make(**overrides: Any) -> CreateClusterOptions:
        data: Dict[str, Any] = {
            "cluster_name": "minimal.example.com",
            "zones": ["us-test-1a"],
        }
        data.update(overrides)
        return CreateClusterOptions(**data)

    return _make
