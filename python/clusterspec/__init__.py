"""
clusterspec

Completes a minimal cluster description (zones, DNS name, a few options) into a
fully specified Cluster and its InstanceGroups, and stores them in a registry.

Usage:
    from clusterspec import CreateClusterOptions, complete_cluster
"""

from clusterspec.completion.orchestrator import complete_cluster
from clusterspec.deployment.create_cluster import create_cluster
from clusterspec.models.options import CreateClusterOptions, MasterPlacementPolicy
from clusterspec.registry.registry import Registry, open_registry

__version__ = "0.1.0"

__all__ = [
    "CreateClusterOptions",
    "MasterPlacementPolicy",
    "Registry",
    "complete_cluster",
    "create_cluster",
    "open_registry",
]
