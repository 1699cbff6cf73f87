"""
clusterspec/completion/validation.py

Consistency checks over a completed Cluster and its InstanceGroups.

Every check runs; all violations are reported together in one ValidationError
so the caller sees the complete picture at once.
"""

from __future__ import annotations

import ipaddress
import itertools
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from clusterspec.completion.zones import region_of
from clusterspec.exceptions import InvalidZoneError, ValidationError
from clusterspec.models.cluster import Cluster, Environment, SubnetType
from clusterspec.models.completion import Diagnostic, DiagnosticLevel
from clusterspec.models.instance_group import InstanceGroup, InstanceGroupRole
from clusterspec.models.meta import CLUSTER_LABEL
from clusterspec.models.options import dns_name_problem


def _parse_cidr(cidr: str) -> Optional[ipaddress.IPv4Network]:
    try:
        network = ipaddress.ip_network(cidr, strict=True)
    except ValueError:
        return None
    return network if isinstance(network, ipaddress.IPv4Network) else None


def _cluster_violations(cluster: Cluster) -> List[str]:
    spec = cluster.spec
    problems: List[str] = []

    name_problem = dns_name_problem(cluster.name)
    if name_problem:
        problems.append(f"cluster name '{cluster.name}': {name_problem}")

    if not spec.zones:
        problems.append("cluster has no zones")
    for zone, count in sorted(Counter(spec.zones).items()):
        if count > 1:
            problems.append(f"zone {zone} is listed {count} times")
    for zone in spec.zones:
        try:
            zone_region = region_of(zone)
        except InvalidZoneError as e:
            problems.append(str(e))
            continue
        if zone_region != spec.region:
            problems.append(f"zone {zone} is not in region {spec.region}")

    network = _parse_cidr(spec.network_cidr)
    if network is None:
        problems.append(f"networkCIDR '{spec.network_cidr}' is not a valid IPv4 network")

    parsed: Dict[str, ipaddress.IPv4Network] = {}
    for name, count in sorted(Counter(s.name for s in spec.subnets).items()):
        if count > 1:
            problems.append(f"subnet name {name} is used {count} times")
    for subnet in spec.subnets:
        if subnet.zone not in spec.zones:
            problems.append(f"subnet {subnet.name} is in zone {subnet.zone}, not a cluster zone")
        cidr = _parse_cidr(subnet.cidr)
        if cidr is None:
            problems.append(f"subnet {subnet.name} CIDR '{subnet.cidr}' is not a valid IPv4 network")
            continue
        if network is not None and not cidr.subnet_of(network):
            problems.append(
                f"subnet {subnet.name} CIDR {cidr} is not contained in networkCIDR {network}"
            )
        parsed[subnet.name] = cidr

    for (a_name, a), (b_name, b) in itertools.combinations(parsed.items(), 2):
        if a.overlaps(b):
            problems.append(f"subnets {a_name} ({a}) and {b_name} ({b}) overlap")

    covered = {s.zone for s in spec.subnets if s.type != SubnetType.utility}
    for zone in spec.zones:
        if zone not in covered:
            problems.append(f"zone {zone} has no subnet")

    return problems


def _group_violations(cluster: Cluster, groups: Sequence[InstanceGroup]) -> List[str]:
    spec = cluster.spec
    problems: List[str] = []
    zones = set(spec.zones)
    subnet_names = {s.name for s in spec.subnets}

    for name, count in sorted(Counter(g.name for g in groups).items()):
        if count > 1:
            problems.append(f"instance group name {name} is used {count} times")

    for group in groups:
        gspec = group.spec
        label = (group.metadata.labels or {}).get(CLUSTER_LABEL)
        if label != cluster.name:
            problems.append(
                f"instance group {group.name} is labelled for cluster '{label}', not '{cluster.name}'"
            )
        if not gspec.zones:
            problems.append(f"instance group {group.name} has no zones")
        outside = sorted(set(gspec.zones) - zones)
        if outside:
            problems.append(
                f"instance group {group.name} uses zone(s) {', '.join(outside)} not in the cluster"
            )
        missing = sorted(set(gspec.subnets) - subnet_names)
        if missing:
            problems.append(
                f"instance group {group.name} references unknown subnet(s) {', '.join(missing)}"
            )
        if gspec.min_size is None or gspec.max_size is None:
            problems.append(f"instance group {group.name} has no size bounds")
        elif gspec.min_size > gspec.max_size:
            problems.append(
                f"instance group {group.name} minSize {gspec.min_size} exceeds maxSize {gspec.max_size}"
            )
        if gspec.role == InstanceGroupRole.master:
            if len(gspec.zones) != 1:
                problems.append(
                    f"master instance group {group.name} must be in exactly one zone, "
                    f"has {len(gspec.zones)}"
                )
            if gspec.min_size is not None and gspec.min_size < 1:
                problems.append(f"master instance group {group.name} must have minSize >= 1")

    masters = [g for g in groups if g.spec.role == InstanceGroupRole.master]
    master_zones = sorted({z for g in masters for z in g.spec.zones})
    if not masters:
        problems.append("cluster has no master instance group")
    elif spec.environment == Environment.production and len(master_zones) % 2 == 0:
        problems.append(
            f"production clusters need an odd number of master zones for etcd quorum; "
            f"got {len(master_zones)} ({', '.join(master_zones)})"
        )

    master_names = {g.name for g in masters}
    for etcd in spec.etcd_clusters:
        referenced = {m.instance_group for m in etcd.etcd_members}
        for member in etcd.etcd_members:
            if member.instance_group not in master_names:
                problems.append(
                    f"etcd cluster {etcd.name} member {member.name} references "
                    f"unknown master group {member.instance_group}"
                )
        for name in sorted(master_names - referenced):
            problems.append(f"etcd cluster {etcd.name} has no member for master group {name}")

    return problems


def collect_violations(cluster: Cluster, groups: Sequence[InstanceGroup]) -> List[str]:
    """Return every invariant violation found on the cluster and its groups."""
    return _cluster_violations(cluster) + _group_violations(cluster, groups)


def validate_completion(cluster: Cluster, groups: Sequence[InstanceGroup]) -> None:
    """
    Validate a completed specification.

    Raises:
        ValidationError: Listing every violation, if there is at least one.
    """
    violations = collect_violations(cluster, groups)
    if violations:
        raise ValidationError(violations)


def sibling_overlaps(cluster: Cluster, existing: Iterable[Cluster]) -> List[Diagnostic]:
    """
    Warn about other registry clusters whose networkCIDR overlaps this one.

    Overlap is allowed (clusters may live in separate VPCs) but usually a mistake.
    """
    network = _parse_cidr(cluster.spec.network_cidr)
    if network is None:
        return []
    notes = []
    for other in existing:
        if other.name == cluster.name:
            continue
        other_network = _parse_cidr(other.spec.network_cidr)
        if other_network is not None and network.overlaps(other_network):
            notes.append(
                Diagnostic(
                    level=DiagnosticLevel.warning,
                    message=(
                        f"networkCIDR {network} overlaps cluster {other.name} "
                        f"({other_network})."
                    ),
                )
            )
    return notes
