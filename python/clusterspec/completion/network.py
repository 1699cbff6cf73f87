"""
clusterspec/completion/network.py

Allocates the cluster network block and one subnet per zone.

The network block is split into 2**b equal blocks, with the smallest b >= 3
such that 2**b - 1 >= number of zones. Block 0 is reserved; zone i (in sorted
order) gets block i + 1. A /16 with up to 7 zones thus yields /19 subnets
starting at x.x.32.0/19. For private topologies the reserved block is split
again (smallest u >= 3 with 2**u >= zones) into one utility subnet per zone.
"""

from __future__ import annotations

import ipaddress
import itertools
import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from clusterspec.exceptions import (
    InsufficientAddressSpaceError,
    UnsupportedConfigurationError,
)
from clusterspec.models.cluster import ClusterSubnet, SubnetType

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_CIDR = "172.20.0.0/16"
MIN_SPLIT_BITS = 3
# Smallest subnet the cloud will accept.
MIN_SUBNET_PREFIX = 28
UTILITY_PREFIX = "utility-"


class NetworkPlan(BaseModel):
    network_cidr: str
    subnets: List[ClusterSubnet]

    model_config = {"frozen": True}


def parse_network(cidr: str) -> ipaddress.IPv4Network:
    """
    Parse an IPv4 network block such as '10.0.0.0/16'.

    Raises:
        UnsupportedConfigurationError: If the CIDR is malformed, has host bits
            set, or is not IPv4.
    """
    try:
        network = ipaddress.ip_network(cidr, strict=True)
    except ValueError as e:
        raise UnsupportedConfigurationError(f"Invalid network CIDR '{cidr}': {e}") from e
    if not isinstance(network, ipaddress.IPv4Network):
        raise UnsupportedConfigurationError(
            f"Network CIDR '{cidr}' is not IPv4; only IPv4 networks are supported."
        )
    return network


def split_bits(count: int, *, reserve_first: bool) -> int:
    """Smallest b >= MIN_SPLIT_BITS leaving at least `count` usable blocks out of 2**b."""
    reserved = 1 if reserve_first else 0
    bits = MIN_SPLIT_BITS
    while 2**bits - reserved < count:
        bits += 1
    return bits


def carve(
    network: ipaddress.IPv4Network, bits: int, count: int, *, what: str
) -> List[ipaddress.IPv4Network]:
    """
    Return the first `count` blocks of `network` split into 2**bits parts.

    Raises:
        InsufficientAddressSpaceError: If the resulting blocks would be smaller
            than /MIN_SUBNET_PREFIX.
    """
    new_prefix = network.prefixlen + bits
    if new_prefix > MIN_SUBNET_PREFIX:
        raise InsufficientAddressSpaceError(
            f"Cannot carve {what} out of {network}: each would need a /{new_prefix}, "
            f"smaller than the minimum /{MIN_SUBNET_PREFIX}."
        )
    return list(itertools.islice(network.subnets(new_prefix=new_prefix), count))


def plan_network(
    zones: Sequence[str],
    network_cidr: Optional[str] = None,
    *,
    private: bool = False,
    subnet_overrides: Optional[Dict[str, str]] = None,
) -> NetworkPlan:
    """
    Plan the network block and per-zone subnets.

    Args:
        zones: Zone identifiers (any order; allocation follows sorted order).
        network_cidr: Network block; DEFAULT_NETWORK_CIDR when None.
        private: Emit Private subnets plus Utility subnets instead of Public ones.
        subnet_overrides: Zone -> CIDR pins, used verbatim (checked by validation).

    Returns:
        NetworkPlan: The network CIDR and the ordered subnets.

    Raises:
        InsufficientAddressSpaceError: If the block cannot hold one subnet per zone.
        UnsupportedConfigurationError: On a malformed CIDR or an override for an
            unknown zone.
    """
    network = parse_network(network_cidr or DEFAULT_NETWORK_CIDR)
    ordered = sorted(zones)
    overrides = dict(subnet_overrides or {})

    unknown = sorted(set(overrides) - set(ordered))
    if unknown:
        raise UnsupportedConfigurationError(
            f"Subnet CIDR override(s) given for zone(s) not in the cluster: {', '.join(unknown)}."
        )

    needs_allocation = private or any(zone not in overrides for zone in ordered)
    blocks: List[ipaddress.IPv4Network] = []
    if needs_allocation:
        bits = split_bits(len(ordered), reserve_first=True)
        blocks = carve(network, bits, len(ordered) + 1, what=f"{len(ordered)} zone subnet(s)")

    zone_type = SubnetType.private if private else SubnetType.public
    subnets = [
        ClusterSubnet(
            name=zone,
            zone=zone,
            cidr=overrides[zone] if zone in overrides else str(blocks[index + 1]),
            type=zone_type,
        )
        for index, zone in enumerate(ordered)
    ]

    if private:
        utility_bits = split_bits(len(ordered), reserve_first=False)
        utility_blocks = carve(
            blocks[0], utility_bits, len(ordered), what=f"{len(ordered)} utility subnet(s)"
        )
        subnets += [
            ClusterSubnet(
                name=f"{UTILITY_PREFIX}{zone}",
                zone=zone,
                cidr=str(utility_blocks[index]),
                type=SubnetType.utility,
            )
            for index, zone in enumerate(ordered)
        ]

    logger.debug(
        "Network plan for %s: %s",
        network,
        ", ".join(f"{s.name}={s.cidr}" for s in subnets),
    )
    return NetworkPlan(network_cidr=str(network), subnets=subnets)
