"""Tests for zone validation and region inference."""

from __future__ import annotations

import pytest

from clusterspec.completion.zones import region_of, resolve_zones
from clusterspec.exceptions import InvalidZoneError


@pytest.mark.parametrize(
    "zone,region",
    [
        ("us-test-1a", "us-test-1"),
        ("us-east-1c", "us-east-1"),
        ("eu-central-1b", "eu-central-1"),
        ("ap-southeast-2a", "ap-southeast-2"),
    ],
)
def test_region_of(zone: str, region: str) -> None:
    assert region_of(zone) == region


@pytest.mark.parametrize("zone", ["", "us-east-1", "US-EAST-1A", "us-east-1ab", "1a", "us-east-1-a"])
def test_region_of_rejects_malformed(zone: str) -> None:
    with pytest.raises(InvalidZoneError):
        region_of(zone)


def test_resolve_zones_sorts_and_infers_region() -> None:
    zone_set = resolve_zones(["us-test-1c", "us-test-1a", "us-test-1b"])
    assert zone_set.region == "us-test-1"
    assert zone_set.zones == ["us-test-1a", "us-test-1b", "us-test-1c"]


def test_resolve_zones_empty() -> None:
    with pytest.raises(InvalidZoneError, match="At least one zone"):
        resolve_zones([])


def test_resolve_zones_duplicates() -> None:
    with pytest.raises(InvalidZoneError, match="Duplicate zone"):
        resolve_zones(["us-test-1a", "us-test-1a"])


def test_resolve_zones_mixed_regions() -> None:
    with pytest.raises(InvalidZoneError) as exc_info:
        resolve_zones(["us-test-1a", "us-test-2a"])
    assert "us-test-1, us-test-2" in str(exc_info.value)


def test_resolve_zones_rejects_hyphenated_alias() -> None:
    with pytest.raises(InvalidZoneError, match="us-test-1-a"):
        resolve_zones(["us-test-1a", "us-test-1-a"])
