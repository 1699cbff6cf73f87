"""Tests for the aggregated consistency checks."""

from __future__ import annotations

import asyncio
from typing import List, Tuple

import pytest

from clusterspec.completion.orchestrator import complete_cluster
from clusterspec.completion.validation import (
    collect_violations,
    sibling_overlaps,
    validate_completion,
)
from clusterspec.exceptions import ValidationError
from clusterspec.models.cluster import Cluster, ClusterSubnet, Environment, SubnetType
from clusterspec.models.instance_group import InstanceGroup
from clusterspec.models.options import CreateClusterOptions


def _completed(zones: List[str]) -> Tuple[Cluster, List[InstanceGroup]]:
    options = CreateClusterOptions(
        cluster_name="valid.example.com", zones=zones, hosted_zone_id="Z1"
    )
    result = asyncio.run(complete_cluster(options))
    return result.cluster, result.instance_groups


def _with_spec(cluster: Cluster, **updates) -> Cluster:
    return cluster.model_copy(update={"spec": cluster.spec.model_copy(update=updates)})


def _with_group_spec(group: InstanceGroup, **updates) -> InstanceGroup:
    return group.model_copy(update={"spec": group.spec.model_copy(update=updates)})


def test_completed_cluster_is_valid() -> None:
    cluster, groups = _completed(["us-test-1a", "us-test-1b", "us-test-1c"])
    assert collect_violations(cluster, groups) == []
    validate_completion(cluster, groups)


def test_subset_violations() -> None:
    cluster, groups = _completed(["us-test-1a"])
    nodes = _with_group_spec(groups[1], zones=["us-test-1a", "us-test-1z"], subnets=["nope"])
    violations = collect_violations(cluster, [groups[0], nodes])
    assert "instance group nodes uses zone(s) us-test-1z not in the cluster" in violations
    assert "instance group nodes references unknown subnet(s) nope" in violations


def test_overlapping_and_escaping_subnets() -> None:
    cluster, groups = _completed(["us-test-1a", "us-test-1b"])
    subnets = [
        ClusterSubnet(name="us-test-1a", zone="us-test-1a", cidr="172.20.0.0/17", type=SubnetType.public),
        ClusterSubnet(name="us-test-1b", zone="us-test-1b", cidr="172.20.64.0/19", type=SubnetType.public),
        ClusterSubnet(name="outside", zone="us-test-1b", cidr="10.0.0.0/24", type=SubnetType.public),
    ]
    violations = collect_violations(_with_spec(cluster, subnets=subnets), groups)
    assert any("overlap" in v for v in violations)
    assert "subnet outside CIDR 10.0.0.0/24 is not contained in networkCIDR 172.20.0.0/16" in violations


def test_all_violations_reported_together() -> None:
    cluster, groups = _completed(["us-test-1a"])
    broken_cluster = _with_spec(cluster, region="eu-west-1", network_cidr="bogus")
    broken_master = _with_group_spec(groups[0], min_size=3, max_size=2)
    with pytest.raises(ValidationError) as exc_info:
        validate_completion(broken_cluster, [broken_master, groups[1]])
    violations = exc_info.value.violations
    assert "zone us-test-1a is not in region eu-west-1" in violations
    assert "networkCIDR 'bogus' is not a valid IPv4 network" in violations
    assert "instance group master-us-test-1a minSize 3 exceeds maxSize 2" in violations
    assert len(violations) >= 3


def test_missing_master() -> None:
    cluster, groups = _completed(["us-test-1a"])
    violations = collect_violations(cluster, groups[1:])
    assert "cluster has no master instance group" in violations


def test_even_master_count_in_production() -> None:
    cluster, groups = _completed(["us-test-1a", "us-test-1b", "us-test-1c"])
    violations = collect_violations(cluster, [groups[0], groups[1], groups[3]])
    assert any("odd number of master zones" in v for v in violations)

    development = _with_spec(cluster, environment=Environment.development)
    dev_violations = collect_violations(development, [groups[0], groups[1], groups[3]])
    assert not any("odd number" in v for v in dev_violations)


def test_cluster_label_must_match() -> None:
    cluster, groups = _completed(["us-test-1a"])
    relabelled = groups[1].model_copy(
        update={"metadata": groups[1].metadata.model_copy(update={"labels": {}})}
    )
    violations = collect_violations(cluster, [groups[0], relabelled])
    assert "instance group nodes is labelled for cluster 'None', not 'valid.example.com'" in violations


def test_sibling_overlap_is_a_warning() -> None:
    cluster, _ = _completed(["us-test-1a"])
    other = cluster.model_copy(
        update={"metadata": cluster.metadata.model_copy(update={"name": "other.example.com"})}
    )
    notes = sibling_overlaps(cluster, [cluster, other])
    assert len(notes) == 1
    assert "other.example.com" in notes[0].message

    elsewhere = _with_spec(other, network_cidr="10.0.0.0/16")
    assert sibling_overlaps(cluster, [elsewhere]) == []
