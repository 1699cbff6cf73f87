"""
clusterspec/completion/topology.py

Decides master placement and node-group shape, producing draft InstanceGroups
(role, zones, subnets and size bounds set; machine fields left unset).

Master placement without explicit master zones follows MasterPlacementPolicy:
an even zone count is reduced to the largest odd subset (dropping the last or
first zone in sorted order) and a warning diagnostic is emitted.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from clusterspec.exceptions import UnsupportedConfigurationError
from clusterspec.completion.network import UTILITY_PREFIX
from clusterspec.models.completion import Diagnostic, DiagnosticLevel
from clusterspec.models.instance_group import (
    InstanceGroup,
    InstanceGroupRole,
    InstanceGroupSpec,
)
from clusterspec.models.meta import CLUSTER_LABEL, ObjectMeta
from clusterspec.models.options import MasterPlacementPolicy

logger = logging.getLogger(__name__)

MASTER_PREFIX = "master-"
NODES_GROUP_NAME = "nodes"
BASTION_GROUP_NAME = "bastions"
DEFAULT_NODE_COUNT = 2


class TopologyPlan(BaseModel):
    master_zones: List[str]
    instance_groups: List[InstanceGroup]
    diagnostics: List[Diagnostic] = Field(default_factory=list)


def master_group_name(zone: str) -> str:
    return f"{MASTER_PREFIX}{zone}"


def select_master_zones(
    zones: Sequence[str], policy: MasterPlacementPolicy
) -> Tuple[List[str], Optional[Diagnostic]]:
    """
    Choose master zones from the cluster zones according to `policy`.

    Returns:
        The chosen zones (sorted) and a warning diagnostic if zones were dropped.
    """
    ordered = sorted(zones)
    if policy == MasterPlacementPolicy.all_zones or len(ordered) % 2 == 1:
        return ordered, None

    if policy == MasterPlacementPolicy.drop_first:
        chosen, dropped = ordered[1:], ordered[0]
    else:
        chosen, dropped = ordered[:-1], ordered[-1]

    note = Diagnostic(
        level=DiagnosticLevel.warning,
        message=(
            f"{len(ordered)} zones give an even control-plane quorum; placing masters in "
            f"{len(chosen)} zone(s) ({', '.join(chosen)}) and leaving out {dropped} "
            f"(policy {policy.value})."
        ),
    )
    return chosen, note


def _draft(
    cluster_name: str,
    name: str,
    role: InstanceGroupRole,
    zones: List[str],
    subnets: List[str],
    min_size: int,
    max_size: int,
) -> InstanceGroup:
    return InstanceGroup(
        metadata=ObjectMeta(name=name, labels={CLUSTER_LABEL: cluster_name}),
        spec=InstanceGroupSpec(
            role=role,
            zones=zones,
            subnets=subnets,
            min_size=min_size,
            max_size=max_size,
        ),
    )


def node_size_bounds(
    node_min_size: Optional[int], node_max_size: Optional[int]
) -> Tuple[int, int]:
    """Fill whichever bound is missing from DEFAULT_NODE_COUNT, keeping min <= max."""
    if node_min_size is None:
        node_min_size = (
            DEFAULT_NODE_COUNT
            if node_max_size is None
            else min(DEFAULT_NODE_COUNT, node_max_size)
        )
    if node_max_size is None:
        node_max_size = max(DEFAULT_NODE_COUNT, node_min_size)
    return node_min_size, node_max_size


def synthesize_topology(
    cluster_name: str,
    zones: Sequence[str],
    *,
    master_zones: Optional[Sequence[str]] = None,
    policy: MasterPlacementPolicy = MasterPlacementPolicy.drop_last,
    node_min_size: Optional[int] = None,
    node_max_size: Optional[int] = None,
    bastion: bool = False,
    private: bool = False,
) -> TopologyPlan:
    """
    Build draft instance groups for a cluster.

    Args:
        cluster_name: Owning cluster, written to each group's cluster label.
        zones: Cluster zones.
        master_zones: Explicit master zones; used verbatim (sorted) when given.
        policy: Placement policy used when master_zones is None.
        node_min_size: Node group minimum size (default DEFAULT_NODE_COUNT).
        node_max_size: Node group maximum size (default DEFAULT_NODE_COUNT).
        bastion: Add a bastion group in the utility subnets.
        private: Whether the cluster uses a private topology.

    Returns:
        TopologyPlan: Masters (sorted by zone), then 'nodes', then 'bastions'.

    Raises:
        UnsupportedConfigurationError: If a bastion is requested for a public topology.
    """
    ordered = sorted(zones)
    diagnostics: List[Diagnostic] = []

    if master_zones is not None:
        chosen = sorted(master_zones)
    else:
        chosen, note = select_master_zones(ordered, policy)
        if note is not None:
            logger.warning(note.message)
            diagnostics.append(note)

    groups = [
        _draft(
            cluster_name,
            master_group_name(zone),
            InstanceGroupRole.master,
            [zone],
            [zone],
            1,
            1,
        )
        for zone in chosen
    ]

    min_size, max_size = node_size_bounds(node_min_size, node_max_size)
    groups.append(
        _draft(
            cluster_name,
            NODES_GROUP_NAME,
            InstanceGroupRole.node,
            list(ordered),
            list(ordered),
            min_size,
            max_size,
        )
    )

    if bastion:
        if not private:
            raise UnsupportedConfigurationError(
                "A bastion requires the private topology (topology: private)."
            )
        groups.append(
            _draft(
                cluster_name,
                BASTION_GROUP_NAME,
                InstanceGroupRole.bastion,
                list(ordered),
                [f"{UTILITY_PREFIX}{zone}" for zone in ordered],
                1,
                1,
            )
        )

    return TopologyPlan(master_zones=chosen, instance_groups=groups, diagnostics=diagnostics)
