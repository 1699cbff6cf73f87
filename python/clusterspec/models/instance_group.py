"""
clusterspec/models/instance_group.py

Pydantic models for a homogeneous pool of machines serving one role.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from clusterspec.models.meta import SpecModel, VersionedObject


class InstanceGroupRole(str, Enum):
    master = "Master"
    node = "Node"
    bastion = "Bastion"


class InstanceGroupSpec(SpecModel):
    """Placement and sizing of an instance group.

    Attributes:
        role: Master, Node or Bastion.
        zones: Non-empty subset of the cluster zones (exactly one for masters).
        subnets: Names of the cluster subnets the machines are placed in.
        min_size: Lower bound of the machine count.
        max_size: Upper bound of the machine count.
        machine_type: Instance type, e.g. 't2.medium'.
        image: Machine image.
        root_volume_size: Root volume size in GB.
    """

    role: InstanceGroupRole
    zones: List[str]
    subnets: List[str]
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    machine_type: Optional[str] = None
    image: Optional[str] = None
    root_volume_size: Optional[int] = None


class InstanceGroup(VersionedObject):
    """A versioned InstanceGroup object, owned by a cluster via its cluster label."""

    kind: Literal["InstanceGroup"] = "InstanceGroup"
    spec: InstanceGroupSpec


__all__ = ["InstanceGroupRole", "InstanceGroupSpec", "InstanceGroup"]
