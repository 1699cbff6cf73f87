"""Tests for hosted zone matching and the DNS providers."""

from __future__ import annotations

import asyncio
import json
from typing import List
from unittest.mock import AsyncMock, patch

import pytest

from clusterspec.completion.dns import find_hosted_zone, zone_owns
from clusterspec.dns.provider import (
    HostedZoneProvider,
    Route53CliProvider,
    StaticHostedZoneProvider,
    fetch_hosted_zones,
    parse_route53_zones,
)
from clusterspec.exceptions import (
    DNSProviderUnavailableError,
    InvalidOptionsError,
    NoMatchingHostedZoneError,
)
from clusterspec.models.dns import HostedZone
from clusterspec.utils.async_command_runner import CommandError


def _zone(name: str, zone_id: str, private: bool = False) -> HostedZone:
    return HostedZone(name=name, id=zone_id, private=private)


class SlowProvider(HostedZoneProvider):
    """Never answers within any reasonable timeout."""

    async def list_hosted_zones(self) -> List[HostedZone]:
        await asyncio.sleep(3600)
        return []


class BrokenProvider(HostedZoneProvider):
    async def list_hosted_zones(self) -> List[HostedZone]:
        raise ConnectionRefusedError("connection refused")


def test_zone_owns_label_boundaries() -> None:
    assert zone_owns("example.com.", "foo.example.com")
    assert zone_owns("example.com.", "example.com")
    assert zone_owns("Example.COM", "foo.example.com.")
    assert not zone_owns("ample.com.", "foo.example.com")
    assert not zone_owns("foo.example.com.", "example.com")


def test_longest_suffix_wins() -> None:
    catalog = [_zone("example.com.", "Z1"), _zone("dev.example.com.", "Z2")]
    assert find_hosted_zone("foo.dev.example.com", catalog).id == "Z2"


def test_single_parent_zone_matches() -> None:
    assert find_hosted_zone("foo.dev.example.com", [_zone("example.com.", "Z1")]).id == "Z1"


def test_no_match_raises() -> None:
    with pytest.raises(NoMatchingHostedZoneError) as exc_info:
        find_hosted_zone("foo.dev.example.com", [_zone("other.org.", "Z9")])
    assert exc_info.value.dns_name == "foo.dev.example.com"
    assert exc_info.value.candidates == ["other.org."]


def test_public_zone_preferred_over_private_twin() -> None:
    catalog = [
        _zone("example.com.", "ZPRIVATE", private=True),
        _zone("example.com.", "ZPUBLIC"),
    ]
    assert find_hosted_zone("a.example.com", catalog).id == "ZPUBLIC"


def test_equal_candidates_resolved_by_lowest_id() -> None:
    catalog = [_zone("example.com.", "ZB"), _zone("example.com.", "ZA")]
    assert find_hosted_zone("a.example.com", catalog).id == "ZA"


def test_hosted_zone_id_prefix_stripped() -> None:
    assert _zone("example.com.", "/hostedzone/Z1AFAKE1ZON3YO").id == "Z1AFAKE1ZON3YO"


def test_static_provider_from_yaml() -> None:
    provider = StaticHostedZoneProvider.from_yaml(
        "hostedZones:\n- name: example.com.\n  id: /hostedzone/Z1\n  private: true\n"
    )
    zones = asyncio.run(provider.list_hosted_zones())
    assert zones == [HostedZone(name="example.com.", id="Z1", private=True)]
    assert provider.calls == 1


def test_static_provider_from_yaml_rejects_unknown_keys() -> None:
    with pytest.raises(InvalidOptionsError):
        StaticHostedZoneProvider.from_yaml("zones: []\n")


@pytest.mark.asyncio
async def test_fetch_hosted_zones_times_out() -> None:
    with pytest.raises(DNSProviderUnavailableError, match="timed out after 0.05s"):
        await fetch_hosted_zones(SlowProvider(), timeout=0.05)


@pytest.mark.asyncio
async def test_fetch_hosted_zones_transport_failure() -> None:
    with pytest.raises(DNSProviderUnavailableError, match="connection refused"):
        await fetch_hosted_zones(BrokenProvider(), timeout=1)


def test_parse_route53_zones() -> None:
    raw = json.dumps(
        {
            "HostedZones": [
                {
                    "Id": "/hostedzone/Z1AFAKE1ZON3YO",
                    "Name": "example.com.",
                    "Config": {"PrivateZone": False},
                },
                {
                    "Id": "/hostedzone/Z2INTERNAL",
                    "Name": "internal.example.com.",
                    "Config": {"PrivateZone": True},
                },
            ]
        }
    )
    assert parse_route53_zones(raw) == [
        HostedZone(name="example.com.", id="Z1AFAKE1ZON3YO", private=False),
        HostedZone(name="internal.example.com.", id="Z2INTERNAL", private=True),
    ]


def test_parse_route53_zones_rejects_garbage() -> None:
    with pytest.raises(DNSProviderUnavailableError):
        parse_route53_zones("not json")
    with pytest.raises(DNSProviderUnavailableError):
        parse_route53_zones('{"HostedZones": {}}')


def test_route53_command_includes_profile() -> None:
    assert Route53CliProvider(profile="dev").build_command() == [
        "aws",
        "route53",
        "list-hosted-zones",
        "--output",
        "json",
        "--profile",
        "dev",
    ]


@pytest.mark.asyncio
async def test_route53_provider_parses_cli_output() -> None:
    output = json.dumps({"HostedZones": [{"Id": "/hostedzone/Z1", "Name": "example.com."}]})
    with patch(
        "clusterspec.dns.provider.run_command", AsyncMock(return_value=output)
    ) as run:
        zones = await Route53CliProvider().list_hosted_zones()
    assert zones == [HostedZone(name="example.com.", id="Z1", private=False)]
    assert run.await_args.args[0][:3] == ["aws", "route53", "list-hosted-zones"]


@pytest.mark.asyncio
async def test_route53_provider_command_failure() -> None:
    failing = AsyncMock(side_effect=CommandError("AWS session token has expired.", 255))
    with patch("clusterspec.dns.provider.run_command", failing):
        with pytest.raises(DNSProviderUnavailableError, match="token has expired"):
            await Route53CliProvider().list_hosted_zones()


@pytest.mark.asyncio
async def test_fetch_hosted_zones_cancellation_propagates() -> None:
    task = asyncio.ensure_future(fetch_hosted_zones(SlowProvider(), timeout=60))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
