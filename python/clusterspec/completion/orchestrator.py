"""
clusterspec/completion/orchestrator.py

Turns partial CreateClusterOptions into a complete, validated Cluster plus its
InstanceGroups.

Steps:
  1) Resolve zones -> region.
  2) Resolve the hosted zone owning the cluster DNS name (unless pinned).
  3) Plan the network and subnets.
  4) Synthesize master/node/bastion instance groups.
  5) Apply explicit option overrides, then the defaults table.
  6) Validate everything, reporting all violations at once.

Nothing is persisted here; see clusterspec.deployment.create_cluster.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from clusterspec.completion.defaults import DEFAULTS, DefaultsTable, apply_defaults
from clusterspec.completion.dns import find_hosted_zone
from clusterspec.completion.network import NetworkPlan, plan_network
from clusterspec.completion.topology import (
    TopologyPlan,
    master_group_name,
    synthesize_topology,
)
from clusterspec.completion.validation import sibling_overlaps, validate_completion
from clusterspec.completion.zones import ZoneSet, resolve_zones
from clusterspec.dns.provider import (
    DEFAULT_DNS_TIMEOUT,
    HostedZoneProvider,
    fetch_hosted_zones,
)
from clusterspec.exceptions import InvalidOptionsError, UnsupportedConfigurationError
from clusterspec.models.cluster import (
    BastionSpec,
    Cluster,
    ClusterSpec,
    EtcdCluster,
    EtcdMember,
    TopologyMode,
    TopologySpec,
)
from clusterspec.models.completion import CompletionResult
from clusterspec.models.dns import normalize_dns_name, normalize_hosted_zone_id
from clusterspec.models.instance_group import InstanceGroup, InstanceGroupRole
from clusterspec.models.meta import ObjectMeta
from clusterspec.models.options import CreateClusterOptions, MasterPlacementPolicy

logger = logging.getLogger(__name__)

ETCD_CLUSTER_NAMES = ("main", "events")


async def resolve_hosted_zone_id(
    dns_name: str,
    *,
    pinned_id: Optional[str],
    dns_provider: Optional[HostedZoneProvider],
    timeout: float,
) -> str:
    """
    Return the hosted zone id for `dns_name`, querying the provider unless pinned.

    Raises:
        NoMatchingHostedZoneError: If no zone owns the name.
        DNSProviderUnavailableError: If the provider times out or fails.
        UnsupportedConfigurationError: If neither a pinned id nor a provider is given.
        InvalidOptionsError: If the pinned id is empty.
    """
    if pinned_id is not None:
        try:
            return normalize_hosted_zone_id(pinned_id)
        except ValueError as e:
            raise InvalidOptionsError(f"Invalid hostedZoneId '{pinned_id}': {e}") from e
    if dns_provider is None:
        raise UnsupportedConfigurationError(
            "No DNS provider configured and no hostedZoneId pinned in the options."
        )
    catalog = await fetch_hosted_zones(dns_provider, timeout=timeout)
    return find_hosted_zone(dns_name, catalog).id


def _build_cluster(
    options: CreateClusterOptions,
    zone_set: ZoneSet,
    dns_name: str,
    hosted_zone_id: str,
    network: NetworkPlan,
    topology: TopologyPlan,
    config_base: Optional[str],
) -> Cluster:
    mode = options.topology
    etcd_clusters = [
        EtcdCluster(
            name=etcd_name,
            etcd_members=[
                EtcdMember(name=zone, instance_group=master_group_name(zone))
                for zone in topology.master_zones
            ],
        )
        for etcd_name in ETCD_CLUSTER_NAMES
    ]
    bastion = (
        BastionSpec(bastion_public_name=f"bastion.{dns_name}") if options.bastion else None
    )
    return Cluster(
        metadata=ObjectMeta(name=options.cluster_name),
        spec=ClusterSpec(
            dns_name=dns_name,
            hosted_zone_id=hosted_zone_id,
            region=zone_set.region,
            zones=zone_set.zones,
            network_cidr=network.network_cidr,
            subnets=network.subnets,
            topology=TopologySpec(masters=mode, nodes=mode, bastion=bastion),
            master_public_name=f"api.{dns_name}",
            etcd_clusters=etcd_clusters,
            environment=options.environment,
            config_base=config_base,
            channel=options.channel,
            kubernetes_version=options.kubernetes_version,
            networking=options.networking,
            ssh_access=options.ssh_access,
            kubernetes_api_access=options.admin_access,
        ),
    )


def _apply_option_overrides(
    group: InstanceGroup, options: CreateClusterOptions
) -> InstanceGroup:
    """Write user-chosen machine settings into a draft group before defaulting."""
    role = group.spec.role
    updates: Dict[str, Any] = {"image": options.image}
    if role == InstanceGroupRole.master:
        updates.update(machine_type=options.master_size, root_volume_size=options.master_volume_size)
    elif role == InstanceGroupRole.node:
        updates.update(machine_type=options.node_size, root_volume_size=options.node_volume_size)
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        return group
    return group.model_copy(update={"spec": group.spec.model_copy(update=updates)})


async def complete_cluster(
    options: CreateClusterOptions,
    *,
    dns_provider: Optional[HostedZoneProvider] = None,
    policy: Optional[MasterPlacementPolicy] = None,
    dns_timeout: float = DEFAULT_DNS_TIMEOUT,
    existing_clusters: Iterable[Cluster] = (),
    config_base: Optional[str] = None,
    defaults: DefaultsTable = DEFAULTS,
) -> CompletionResult:
    """
    Complete a cluster specification.

    Args:
        options: The user's partial description.
        dns_provider: Source of the hosted zone catalog (not needed if the id is pinned).
        policy: Master placement policy; overrides options.master_placement when given.
        dns_timeout: Bound on the hosted zone lookup, in seconds.
        existing_clusters: Clusters already in the registry, checked for network overlap.
        config_base: Registry location recorded on the cluster.
        defaults: The defaults table to apply.

    Returns:
        CompletionResult: The cluster, its groups (masters, nodes, bastions) and
            non-fatal diagnostics.

    Raises:
        InvalidZoneError, NoMatchingHostedZoneError, DNSProviderUnavailableError,
        InsufficientAddressSpaceError, UnsupportedConfigurationError: From the
            individual stages, unmodified.
        ValidationError: Listing every invariant violation of the assembled result.
    """
    zone_set = resolve_zones(options.zones)
    dns_name = normalize_dns_name(options.effective_dns_name)
    logger.info(
        "Completing cluster %s in region %s (zones: %s)",
        options.cluster_name,
        zone_set.region,
        ", ".join(zone_set.zones),
    )

    hosted_zone_id = await resolve_hosted_zone_id(
        dns_name,
        pinned_id=options.hosted_zone_id,
        dns_provider=dns_provider,
        timeout=dns_timeout,
    )

    private = options.topology == TopologyMode.private
    network = plan_network(
        zone_set.zones,
        options.network_cidr,
        private=private,
        subnet_overrides=options.subnet_cidrs,
    )

    if options.node_count is not None:
        node_min, node_max = options.node_count, options.node_count
    else:
        node_min, node_max = options.node_min_size, options.node_max_size
    topology = synthesize_topology(
        options.cluster_name,
        zone_set.zones,
        master_zones=options.master_zones,
        policy=policy or options.master_placement,
        node_min_size=node_min,
        node_max_size=node_max,
        bastion=options.bastion,
        private=private,
    )

    cluster = _build_cluster(
        options, zone_set, dns_name, hosted_zone_id, network, topology, config_base
    )
    groups: List[InstanceGroup] = [
        _apply_option_overrides(g, options) for g in topology.instance_groups
    ]
    cluster, groups = apply_defaults(cluster, groups, defaults)

    validate_completion(cluster, groups)

    diagnostics = list(topology.diagnostics)
    overlaps = sibling_overlaps(cluster, existing_clusters)
    for note in overlaps:
        logger.warning(note.message)
    diagnostics += overlaps

    return CompletionResult(cluster=cluster, instance_groups=groups, diagnostics=diagnostics)
