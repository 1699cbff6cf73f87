"""
clusterspec.models

Aggregate imports so the core models can be accessed directly from this package.
"""

from clusterspec.models.cluster import (
    BastionSpec,
    Cluster,
    ClusterSpec,
    ClusterSubnet,
    DNSType,
    Environment,
    EtcdCluster,
    EtcdMember,
    SubnetType,
    TopologyMode,
    TopologySpec,
)
from clusterspec.models.completion import CompletionResult, Diagnostic, DiagnosticLevel
from clusterspec.models.dns import HostedZone, HostedZoneCatalog
from clusterspec.models.instance_group import (
    InstanceGroup,
    InstanceGroupRole,
    InstanceGroupSpec,
)
from clusterspec.models.meta import API_VERSION, CLUSTER_LABEL, ObjectMeta
from clusterspec.models.options import CreateClusterOptions, MasterPlacementPolicy

__all__ = [
    "API_VERSION",
    "CLUSTER_LABEL",
    "BastionSpec",
    "Cluster",
    "ClusterSpec",
    "ClusterSubnet",
    "CompletionResult",
    "CreateClusterOptions",
    "Diagnostic",
    "DiagnosticLevel",
    "DNSType",
    "Environment",
    "EtcdCluster",
    "EtcdMember",
    "HostedZone",
    "HostedZoneCatalog",
    "InstanceGroup",
    "InstanceGroupRole",
    "InstanceGroupSpec",
    "MasterPlacementPolicy",
    "ObjectMeta",
    "SubnetType",
    "TopologyMode",
    "TopologySpec",
]
