"""
clusterspec/completion/dns.py

Longest-suffix matching of a cluster DNS name against a hosted zone catalog.

Matching rules:
  - names compare case-insensitively, trailing dots ignored;
  - a zone matches when it equals the DNS name or is a suffix on a label
    boundary ('example.com.' matches 'foo.example.com', 'ample.com.' does not);
  - the longest (most specific) match wins;
  - for equal names (split-horizon zones) a public zone beats a private one,
    then the lowest id wins so the choice is stable.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from clusterspec.exceptions import NoMatchingHostedZoneError
from clusterspec.models.dns import HostedZone, normalize_dns_name

logger = logging.getLogger(__name__)


def zone_owns(zone_name: str, dns_name: str) -> bool:
    """True if `zone_name` is `dns_name` itself or a parent domain of it."""
    zone = normalize_dns_name(zone_name)
    name = normalize_dns_name(dns_name)
    if not zone:
        return False
    return name == zone or name.endswith("." + zone)


def find_hosted_zone(dns_name: str, catalog: Iterable[HostedZone]) -> HostedZone:
    """
    Find the hosted zone that owns `dns_name`.

    Args:
        dns_name: Fully-qualified cluster DNS name, with or without trailing dot.
        catalog: Hosted zones known to the DNS provider.

    Returns:
        HostedZone: The most specific matching zone.

    Raises:
        NoMatchingHostedZoneError: If no zone in the catalog owns `dns_name`.
    """
    zones = list(catalog)

    def _rank(zone: HostedZone) -> Tuple[int, int, str]:
        # Sort key: longest name first, public before private, then lowest id.
        return (-len(zone.normalized_name), int(zone.private), zone.id)

    matches = sorted((z for z in zones if zone_owns(z.name, dns_name)), key=_rank)
    best: Optional[HostedZone] = matches[0] if matches else None
    if best is None:
        raise NoMatchingHostedZoneError(
            normalize_dns_name(dns_name), sorted(z.name for z in zones)
        )

    logger.debug(
        "Hosted zone %s (%s) selected for %s out of %d candidate(s)",
        best.name,
        best.id,
        dns_name,
        len(matches),
    )
    return best
