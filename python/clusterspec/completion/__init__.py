"""
clusterspec/completion/__init__.py

The completion pipeline, leaf first:

- zones.py for region inference
- dns.py for hosted zone matching
- network.py for CIDR allocation
- topology.py for master/node placement
- defaults.py for the versioned defaults table
- validation.py for the aggregated consistency checks
- orchestrator.py to run them in order
"""

from clusterspec.completion.defaults import DEFAULTS, DefaultsTable, apply_defaults
from clusterspec.completion.dns import find_hosted_zone
from clusterspec.completion.network import NetworkPlan, plan_network
from clusterspec.completion.orchestrator import complete_cluster
from clusterspec.completion.topology import TopologyPlan, synthesize_topology
from clusterspec.completion.validation import validate_completion
from clusterspec.completion.zones import ZoneSet, resolve_zones

__all__ = [
    "DEFAULTS",
    "DefaultsTable",
    "NetworkPlan",
    "TopologyPlan",
    "ZoneSet",
    "apply_defaults",
    "complete_cluster",
    "find_hosted_zone",
    "plan_network",
    "resolve_zones",
    "synthesize_topology",
    "validate_completion",
]
