"""
clusterspec/models/cluster.py

Pydantic models describing the desired state of a cluster:
 - SubnetType, TopologyMode, DNSType, Environment (Enums)
 - ClusterSubnet, EtcdMember, EtcdCluster, BastionSpec, TopologySpec
 - ClusterSpec and the versioned Cluster object

Fields left as None are "unset" and get filled by the defaults table.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from clusterspec.models.meta import ObjectMeta, SpecModel, VersionedObject


class SubnetType(str, Enum):
    public = "Public"
    private = "Private"
    utility = "Utility"


class TopologyMode(str, Enum):
    public = "public"
    private = "private"


class DNSType(str, Enum):
    public = "Public"
    private = "Private"


class Environment(str, Enum):
    """Production clusters must run an odd number of control-plane members."""

    production = "production"
    development = "development"


class ClusterSubnet(SpecModel):
    """A subnet of the cluster network, placed in one zone.

    Attributes:
        name: Subnet name, referenced by InstanceGroup.spec.subnets.
        zone: Availability zone holding the subnet.
        cidr: Address block, contained in the cluster networkCIDR.
        type: Public, Private or Utility.
    """

    name: str
    zone: str
    cidr: str
    type: SubnetType


class EtcdMember(SpecModel):
    name: str
    instance_group: str


class EtcdCluster(SpecModel):
    name: str
    etcd_members: List[EtcdMember]


class BastionSpec(SpecModel):
    bastion_public_name: str


class TopologySpec(SpecModel):
    masters: TopologyMode = TopologyMode.public
    nodes: TopologyMode = TopologyMode.public
    dns: DNSType = DNSType.public
    bastion: Optional[BastionSpec] = None


class ClusterSpec(SpecModel):
    """The desired state of a cluster.

    Attributes:
        dns_name: Domain under which cluster records are created.
        hosted_zone_id: Id of the hosted zone owning dns_name.
        region: Cloud region shared by all zones.
        zones: Sorted availability zones.
        network_cidr: Cluster-wide address block.
        subnets: One subnet per zone (plus utility subnets for private topologies).
        topology: Public/private placement of masters and nodes.
        master_public_name: DNS name of the API endpoint.
        etcd_clusters: The 'main' and 'events' etcd clusters, one member per master.
        environment: production or development.
        config_base: Registry location of this cluster, if known.
        channel, cloud_provider, kubernetes_version, networking,
        non_masquerade_cidr, ssh_access, kubernetes_api_access: defaultable settings.
    """

    dns_name: str
    hosted_zone_id: str
    region: str
    zones: List[str]
    network_cidr: str = Field(alias="networkCIDR")
    subnets: List[ClusterSubnet]
    topology: TopologySpec = Field(default_factory=TopologySpec)
    master_public_name: str
    etcd_clusters: List[EtcdCluster] = Field(default_factory=list)
    environment: Environment = Environment.production
    config_base: Optional[str] = None

    channel: Optional[str] = None
    cloud_provider: Optional[str] = None
    kubernetes_version: Optional[str] = None
    networking: Optional[str] = None
    non_masquerade_cidr: Optional[str] = Field(None, alias="nonMasqueradeCIDR")
    ssh_access: Optional[List[str]] = None
    kubernetes_api_access: Optional[List[str]] = None


class Cluster(VersionedObject):
    """A versioned Cluster object as stored in the registry."""

    kind: Literal["Cluster"] = "Cluster"
    spec: ClusterSpec


__all__ = [
    "SubnetType",
    "TopologyMode",
    "DNSType",
    "Environment",
    "ClusterSubnet",
    "EtcdMember",
    "EtcdCluster",
    "BastionSpec",
    "TopologySpec",
    "ClusterSpec",
    "Cluster",
    "ObjectMeta",
]
