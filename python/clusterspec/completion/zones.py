"""
clusterspec/completion/zones.py

Derives the cloud region from a list of availability zones
(e.g. 'us-test-1a' -> 'us-test-1') and validates the list.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from pydantic import BaseModel

from clusterspec.exceptions import InvalidZoneError

# '<region ending in a digit><zone letter>', e.g. 'us-east-1a'.
_ZONE_PATTERN = re.compile(r"^([a-z0-9-]+[0-9])([a-z])$")


class ZoneSet(BaseModel):
    """A validated zone list and the single region it belongs to."""

    region: str
    zones: List[str]

    model_config = {"frozen": True}


def region_of(zone: str) -> str:
    """
    Return the region of a single zone identifier.

    Raises:
        InvalidZoneError: If the zone does not end in '<digit><letter>'.
    """
    match = _ZONE_PATTERN.match(zone)
    if not match:
        raise InvalidZoneError(
            f"Zone '{zone}' is not a valid zone identifier (expected e.g. 'us-east-1a')."
        )
    return match.group(1)


def resolve_zones(zones: Sequence[str]) -> ZoneSet:
    """
    Validate a zone list and infer its region.

    Args:
        zones: Zone identifiers in user order.

    Returns:
        ZoneSet: The region plus the zones in sorted order.

    Raises:
        InvalidZoneError: If the list is empty, has duplicates, contains a
            malformed zone, or the zones span more than one region.
    """
    if not zones:
        raise InvalidZoneError("At least one zone must be specified.")

    duplicates = sorted({z for z in zones if list(zones).count(z) > 1})
    if duplicates:
        raise InvalidZoneError(f"Duplicate zone(s): {', '.join(duplicates)}.")

    regions = {zone: region_of(zone) for zone in zones}
    distinct = sorted(set(regions.values()))
    if len(distinct) != 1:
        raise InvalidZoneError(
            f"Zones must all be in the same region; found regions {', '.join(distinct)}."
        )

    return ZoneSet(region=distinct[0], zones=sorted(zones))
