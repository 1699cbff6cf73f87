"""
filename: clusterspec/deployment/create_cluster.py

Completes a cluster specification and persists it to a registry.

Steps:
  1) List the clusters already in the registry (for network overlap warnings).
  2) Run the completion pipeline; any failure aborts before a single write.
  3) Check every object against the registry for name conflicts.
  4) Upsert the cluster, then its instance groups in order.
"""

from __future__ import annotations

import logging
from typing import Optional

from clusterspec.completion.defaults import DEFAULTS, DefaultsTable
from clusterspec.completion.orchestrator import complete_cluster
from clusterspec.dns.provider import DEFAULT_DNS_TIMEOUT, HostedZoneProvider
from clusterspec.models.completion import CompletionResult
from clusterspec.models.options import CreateClusterOptions, MasterPlacementPolicy
from clusterspec.registry.registry import Registry

logger = logging.getLogger(__name__)


async def create_cluster(
    options: CreateClusterOptions,
    *,
    registry: Registry,
    dns_provider: Optional[HostedZoneProvider] = None,
    policy: Optional[MasterPlacementPolicy] = None,
    dns_timeout: float = DEFAULT_DNS_TIMEOUT,
    defaults: DefaultsTable = DEFAULTS,
    dry_run: bool = False,
) -> CompletionResult:
    """Complete `options` and store the result in `registry`.

    Args:
        options: The user's partial cluster description.
        registry: Destination registry.
        dns_provider: Hosted zone source (unless options pin hostedZoneId).
        policy: Master placement policy override.
        dns_timeout: Bound on the hosted zone lookup, in seconds.
        defaults: Defaults table to apply.
        dry_run: If True => complete and validate only; nothing is written.

    Returns:
        The completed result; when persisted, objects carry their creation timestamps.

    Raises:
        RegistryConflictError: If any object already exists with different content
            (the first conflict found; nothing has been written).
        ClusterSpecError: Any completion error, unmodified.
    """
    existing = await registry.list_clusters()
    result = await complete_cluster(
        options,
        dns_provider=dns_provider,
        policy=policy,
        dns_timeout=dns_timeout,
        existing_clusters=existing,
        config_base=registry.config_base(options.cluster_name),
        defaults=defaults,
    )

    if dry_run:
        logger.info("Dry run: %s not written to the registry", result.cluster.name)
        return result

    conflicts = await registry.find_conflicts(result.cluster, result.instance_groups)
    if conflicts:
        for conflict in conflicts[1:]:
            logger.error("%s", conflict)
        raise conflicts[0]

    cluster = await registry.upsert_cluster(result.cluster)
    groups = [
        await registry.upsert_instance_group(cluster.name, group)
        for group in result.instance_groups
    ]
    return CompletionResult(
        cluster=cluster, instance_groups=groups, diagnostics=result.diagnostics
    )
