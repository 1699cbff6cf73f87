"""
clusterspec/dns/provider.py

The single read capability clusterspec needs from a DNS provider, "list hosted
zones", plus:
  - StaticHostedZoneProvider: an in-memory catalog (tests, --hosted-zones files)
  - Route53CliProvider: lists Route53 zones through the AWS CLI
  - fetch_hosted_zones: bounds a provider call with a timeout and maps
    timeouts/transport failures to DNSProviderUnavailableError
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from clusterspec.exceptions import DNSProviderUnavailableError, InvalidOptionsError
from clusterspec.models.dns import HostedZone, HostedZoneCatalog
from clusterspec.models.validator import validate_type
from clusterspec.utils.async_command_runner import CommandError, run_command

logger = logging.getLogger(__name__)

DEFAULT_DNS_TIMEOUT = 30.0


class HostedZoneProvider(ABC):
    """Abstract capability: list the hosted zones visible to the caller."""

    @abstractmethod
    async def list_hosted_zones(self) -> List[HostedZone]:
        """
        Return every hosted zone known to the provider.

        Raises:
            DNSProviderUnavailableError: If the provider cannot be reached.
        """


class StaticHostedZoneProvider(HostedZoneProvider):
    """A fixed catalog of hosted zones. Counts calls so tests can assert on lookups."""

    def __init__(self, zones: Iterable[HostedZone] = ()) -> None:
        self._zones = list(zones)
        self.calls = 0

    async def list_hosted_zones(self) -> List[HostedZone]:
        self.calls += 1
        return list(self._zones)

    @classmethod
    def from_yaml(cls, yaml_str: str, *, source: str = "hosted zone catalog") -> StaticHostedZoneProvider:
        """
        Build a provider from YAML such as:

            hostedZones:
            - name: example.com.
              id: Z1AFAKE1ZON3YO
        """
        try:
            data = yaml.safe_load(yaml_str) or {}
        except yaml.YAMLError as e:
            raise InvalidOptionsError(f"Invalid {source}: {e}") from e
        catalog = validate_type(data, HostedZoneCatalog, source=source)
        return cls(catalog.hosted_zones)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> StaticHostedZoneProvider:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidOptionsError(f"Cannot read hosted zone file '{path}': {e}") from e
        return cls.from_yaml(text, source=f"hosted zone file '{path}'")


def _aws_error_parser(stderr_str: str) -> Optional[str]:
    lower = stderr_str.lower()
    if "unable to locate credentials" in lower:
        return "AWS credentials not found; configure the AWS CLI or pass --aws-profile."
    if "expiredtoken" in lower or "token has expired" in lower:
        return "AWS session token has expired."
    if "accessdenied" in lower:
        return "Access denied listing Route53 hosted zones (route53:ListHostedZones)."
    return None


class Route53CliProvider(HostedZoneProvider):
    """Lists Route53 hosted zones by running 'aws route53 list-hosted-zones'.

    The AWS CLI follows pagination itself, so one invocation returns every zone.
    """

    def __init__(self, profile: Optional[str] = None, aws_cli: str = "aws") -> None:
        self._profile = profile
        self._aws_cli = aws_cli

    def build_command(self) -> List[str]:
        cmd = [self._aws_cli, "route53", "list-hosted-zones", "--output", "json"]
        if self._profile:
            cmd += ["--profile", self._profile]
        return cmd

    async def list_hosted_zones(self) -> List[HostedZone]:
        try:
            raw = await run_command(self.build_command(), error_parser=_aws_error_parser)
        except CommandError as e:
            raise DNSProviderUnavailableError(f"Listing Route53 hosted zones failed: {e}") from e
        return parse_route53_zones(raw)


def parse_route53_zones(raw_json: str) -> List[HostedZone]:
    """
    Parse 'aws route53 list-hosted-zones' JSON output.

    Raises:
        DNSProviderUnavailableError: If the output is not the expected JSON shape.
    """
    try:
        parsed: Dict[str, Any] = json.loads(raw_json or "{}")
    except json.JSONDecodeError as e:
        raise DNSProviderUnavailableError(f"Unreadable Route53 response: {e}") from e

    items = parsed.get("HostedZones", []) if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        raise DNSProviderUnavailableError("Unreadable Route53 response: no HostedZones list.")

    zones = [
        {
            "name": item.get("Name"),
            "id": item.get("Id"),
            "private": bool((item.get("Config") or {}).get("PrivateZone", False)),
        }
        for item in items
        if isinstance(item, dict)
    ]
    return validate_type(
        zones,
        List[HostedZone],
        source="Route53 response",
        error_cls=DNSProviderUnavailableError,
    )


async def fetch_hosted_zones(
    provider: HostedZoneProvider, timeout: float = DEFAULT_DNS_TIMEOUT
) -> List[HostedZone]:
    """
    List hosted zones with a bounded wait. Never retries.

    Args:
        provider: The DNS provider capability.
        timeout: Seconds to wait before giving up.

    Returns:
        List[HostedZone]: The provider's catalog.

    Raises:
        DNSProviderUnavailableError: On timeout or transport (OS-level) failure.
        asyncio.CancelledError: If the surrounding task is cancelled.
    """
    try:
        zones = await asyncio.wait_for(provider.list_hosted_zones(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise DNSProviderUnavailableError(
            f"Listing hosted zones timed out after {timeout:g}s."
        ) from e
    except OSError as e:
        raise DNSProviderUnavailableError(f"Listing hosted zones failed: {e}") from e
    logger.debug("DNS provider returned %d hosted zone(s)", len(zones))
    return zones
