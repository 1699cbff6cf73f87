"""
clusterspec/completion/defaults.py

A declarative, versioned defaults table and the code applying it.

Defaults are written only into fields that are None, so applying the table to
an already-complete object returns it unchanged.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field, model_validator

from clusterspec.exceptions import UnsupportedConfigurationError
from clusterspec.models.cluster import Cluster, ClusterSpec, TopologyMode
from clusterspec.models.instance_group import (
    InstanceGroup,
    InstanceGroupRole,
    InstanceGroupSpec,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_IMAGE = "kope.io/k8s-1.5-debian-jessie-amd64-hvm-ebs-2017-01-09"


class DefaultsTable(BaseModel):
    """
    Maps cluster fields and (role, field) pairs to default values.

    Attributes:
        version: Identifies the table; bump whenever a value changes.
        cluster: ClusterSpec field name -> default.
        instance_groups: Role -> InstanceGroupSpec field name -> default.
        supported_networking: Networking modes accepted after defaulting.
        private_networking: Networking modes usable with a private topology.
    """

    version: str
    cluster: Dict[str, Any] = Field(default_factory=dict)
    instance_groups: Dict[InstanceGroupRole, Dict[str, Any]] = Field(default_factory=dict)
    supported_networking: List[str] = Field(default_factory=list)
    private_networking: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_field_names(self) -> DefaultsTable:
        """Every key must name a real field, so a typo cannot silently do nothing."""
        unknown = [k for k in self.cluster if k not in ClusterSpec.model_fields]
        unknown += [
            f"{role.value}.{k}"
            for role, fields in self.instance_groups.items()
            for k in fields
            if k not in InstanceGroupSpec.model_fields
        ]
        if unknown:
            raise ValueError(f"Defaults table names unknown field(s): {unknown}")
        return self


DEFAULTS = DefaultsTable(
    version="2017-01-09",
    cluster={
        "channel": "stable",
        "cloud_provider": "aws",
        "kubernetes_version": "v1.5.2",
        "networking": "kubenet",
        "non_masquerade_cidr": "100.64.0.0/10",
        "ssh_access": ["0.0.0.0/0"],
        "kubernetes_api_access": ["0.0.0.0/0"],
    },
    instance_groups={
        InstanceGroupRole.master: {
            "machine_type": "m3.medium",
            "image": DEFAULT_IMAGE,
            "root_volume_size": 64,
            "min_size": 1,
            "max_size": 1,
        },
        InstanceGroupRole.node: {
            "machine_type": "t2.medium",
            "image": DEFAULT_IMAGE,
            "root_volume_size": 128,
            "min_size": 2,
            "max_size": 2,
        },
        InstanceGroupRole.bastion: {
            "machine_type": "t2.micro",
            "image": DEFAULT_IMAGE,
            "root_volume_size": 32,
            "min_size": 1,
            "max_size": 1,
        },
    },
    supported_networking=[
        "kubenet",
        "classic",
        "external",
        "cni",
        "weave",
        "flannel",
        "calico",
    ],
    private_networking=["cni", "weave", "flannel", "calico"],
)


def _fill_unset(model: M, defaults: Dict[str, Any]) -> M:
    """Copy of `model` with each None field in `defaults` set to its default."""
    updates = {
        field: copy.deepcopy(value)
        for field, value in defaults.items()
        if getattr(model, field) is None
    }
    return model.model_copy(update=updates) if updates else model


def apply_cluster_defaults(cluster: Cluster, table: DefaultsTable = DEFAULTS) -> Cluster:
    """
    Fill unset cluster settings and check the result is a supported combination.

    Raises:
        UnsupportedConfigurationError: If the networking mode is unknown to the
            table, or a private topology is combined with a networking mode that
            cannot route across private subnets.
    """
    spec = _fill_unset(cluster.spec, table.cluster)

    if spec.networking is not None and spec.networking not in table.supported_networking:
        raise UnsupportedConfigurationError(
            f"Networking '{spec.networking}' is not supported "
            f"(defaults {table.version} support: {', '.join(table.supported_networking)})."
        )

    private = TopologyMode.private in (spec.topology.masters, spec.topology.nodes)
    if private and spec.networking not in table.private_networking:
        raise UnsupportedConfigurationError(
            f"Private topology requires one of {', '.join(table.private_networking)} "
            f"networking, not '{spec.networking}'."
        )

    return cluster if spec is cluster.spec else cluster.model_copy(update={"spec": spec})


def apply_instance_group_defaults(
    group: InstanceGroup, table: DefaultsTable = DEFAULTS
) -> InstanceGroup:
    """
    Fill unset sizing fields of one group from the (role, field) table.

    Raises:
        UnsupportedConfigurationError: If the table has no entry for the group's role.
    """
    role = group.spec.role
    if role not in table.instance_groups:
        raise UnsupportedConfigurationError(
            f"Defaults {table.version} have no entry for role '{role.value}' "
            f"(instance group '{group.name}')."
        )
    spec = _fill_unset(group.spec, table.instance_groups[role])
    return group if spec is group.spec else group.model_copy(update={"spec": spec})


def apply_defaults(
    cluster: Cluster,
    instance_groups: Sequence[InstanceGroup],
    table: DefaultsTable = DEFAULTS,
) -> Tuple[Cluster, List[InstanceGroup]]:
    """Apply the table to a cluster and all of its groups, preserving group order."""
    logger.debug("Applying defaults table %s to %s", table.version, cluster.name)
    return (
        apply_cluster_defaults(cluster, table),
        [apply_instance_group_defaults(g, table) for g in instance_groups],
    )
