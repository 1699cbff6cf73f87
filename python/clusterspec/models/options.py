"""
clusterspec/models/options.py

The partial, user-authored description of a cluster (CreateClusterOptions)
and the placement policy for masters when the zone count is even.

Options are usually written as YAML with camelCase keys, e.g.:

    clusterName: minimal.example.com
    zones:
    - us-test-1a

Unknown keys are rejected so typos surface as errors instead of being ignored.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from clusterspec.exceptions import InvalidOptionsError
from clusterspec.models.cluster import Environment, TopologyMode
from clusterspec.models.dns import normalize_hosted_zone_id
from clusterspec.models.validator import validate_type

_DNS_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")


def dns_name_problem(name: str) -> Optional[str]:
    """
    Describe why `name` is not a fully qualified, DNS-compatible name.

    Returns:
        Optional[str]: A short reason, or None when the name is acceptable.
    """
    if not name:
        return "name must not be empty"
    if len(name) > 253:
        return "name must be at most 253 characters"
    labels = name.split(".")
    if len(labels) < 2:
        return "name must be a fully qualified domain name (e.g. 'mycluster.example.com')"
    bad = [label for label in labels if not _DNS_LABEL.match(label)]
    if bad:
        return (
            f"label(s) {bad} must be 1-63 lowercase alphanumerics or '-', "
            "not starting or ending with '-'"
        )
    return None


class MasterPlacementPolicy(str, Enum):
    """How master zones are chosen when no masterZones are given.

    drop_last: use every zone, dropping the lexicographically last one when
        the count is even.
    drop_first: same, but drop the first zone.
    all_zones: one master per zone regardless of parity.
    """

    drop_last = "drop-last"
    drop_first = "drop-first"
    all_zones = "all-zones"


class CreateClusterOptions(BaseModel):
    """Partial cluster description; every field except clusterName and zones is optional.

    Attributes:
        cluster_name: Fully qualified cluster name (also the default DNS name).
        zones: Availability zones for the cluster.
        master_zones: Explicit master zones (bypasses the placement policy).
        dns_name: DNS name override.
        hosted_zone_id: Pinned hosted zone id (skips the provider lookup).
        network_cidr: Cluster network block.
        subnet_cidrs: Per-zone subnet CIDR overrides.
        topology: public or private placement of masters and nodes.
        bastion: Add a bastion group (private topology only).
        environment: production or development.
        master_placement: Policy used when master_zones is not given.
        node_count: Fixed node count (sets both min and max).
        node_min_size, node_max_size: Node count bounds.
        master_size, node_size: Machine type overrides.
        image: Image override for every group.
        master_volume_size, node_volume_size: Root volume overrides in GB.
        kubernetes_version, networking, channel: Cluster setting overrides.
        ssh_access: CIDRs allowed to SSH.
        admin_access: CIDRs allowed to reach the API.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    cluster_name: str
    zones: List[str]
    master_zones: Optional[List[str]] = None
    dns_name: Optional[str] = None
    hosted_zone_id: Optional[str] = None
    network_cidr: Optional[str] = Field(None, alias="networkCIDR")
    subnet_cidrs: Optional[Dict[str, str]] = Field(None, alias="subnetCIDRs")
    topology: TopologyMode = TopologyMode.public
    bastion: bool = False
    environment: Environment = Environment.production
    master_placement: MasterPlacementPolicy = MasterPlacementPolicy.drop_last
    node_count: Optional[int] = Field(None, ge=0)
    node_min_size: Optional[int] = Field(None, ge=0)
    node_max_size: Optional[int] = Field(None, ge=0)
    master_size: Optional[str] = None
    node_size: Optional[str] = None
    image: Optional[str] = None
    master_volume_size: Optional[int] = Field(None, ge=1)
    node_volume_size: Optional[int] = Field(None, ge=1)
    kubernetes_version: Optional[str] = None
    networking: Optional[str] = None
    channel: Optional[str] = None
    ssh_access: Optional[List[str]] = None
    admin_access: Optional[List[str]] = None

    @field_validator("cluster_name", "dns_name")
    @classmethod
    def validate_dns_compatible(cls, value: Optional[str]) -> Optional[str]:
        """Reject names that are not lowercase fully qualified domain names."""
        if value is None:
            return value
        problem = dns_name_problem(value.rstrip("."))
        if problem:
            raise ValueError(problem)
        return value.rstrip(".")

    @field_validator("hosted_zone_id")
    @classmethod
    def strip_hosted_zone_prefix(cls, value: Optional[str]) -> Optional[str]:
        """Accept '/hostedzone/<ID>' or '<ID>'; keep only '<ID>'."""
        return None if value is None else normalize_hosted_zone_id(value)

    @model_validator(mode="after")
    def check_node_sizes(self) -> CreateClusterOptions:
        """nodeCount excludes nodeMinSize/nodeMaxSize, and min must not exceed max."""
        if self.node_count is not None and (
            self.node_min_size is not None or self.node_max_size is not None
        ):
            raise ValueError(
                "nodeCount and nodeMinSize/nodeMaxSize are mutually exclusive."
            )
        if (
            self.node_min_size is not None
            and self.node_max_size is not None
            and self.node_min_size > self.node_max_size
        ):
            raise ValueError("nodeMinSize must not exceed nodeMaxSize.")
        return self

    @property
    def effective_dns_name(self) -> str:
        return self.dns_name or self.cluster_name

    @classmethod
    def from_dict(cls, data: Any, *, source: str = "options") -> CreateClusterOptions:
        """Validate untyped data (e.g. parsed YAML) into options.

        Raises:
            InvalidOptionsError: On unknown keys, missing keys or bad values.
        """
        if not isinstance(data, dict):
            raise InvalidOptionsError(f"Invalid {source}: expected a mapping at top level.")
        return validate_type(data, cls, source=source)

    @classmethod
    def from_yaml(cls, yaml_str: str, *, source: str = "options") -> CreateClusterOptions:
        """Parse options from a YAML document."""
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise InvalidOptionsError(f"Invalid {source}: {e}") from e
        return cls.from_dict(data, source=source)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> CreateClusterOptions:
        """Read and parse an options YAML file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidOptionsError(f"Cannot read options file '{path}': {e}") from e
        return cls.from_yaml(text, source=f"options file '{path}'")

    def merged_with(self, overrides: Dict[str, Any]) -> CreateClusterOptions:
        """Return new options with the non-None overrides applied (re-validated)."""
        data = self.model_dump(by_alias=False, exclude_none=True)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return validate_type(data, CreateClusterOptions, source="options")
