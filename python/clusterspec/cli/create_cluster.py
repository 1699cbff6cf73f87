#!/usr/bin/env python3
"""
clusterspec/cli/create_cluster.py

CLI that completes a cluster specification and stores it in a registry.

Options come from an options YAML file (--options), from flags, or both
(flags win). Hosted zones come from a catalog file (--hosted-zones) or from
Route53 through the AWS CLI.

Usage:
  python -m clusterspec.cli.create_cluster --name minimal.example.com \\
      --zones us-test-1a --state memfs://tests --hosted-zones zones.yaml
  python -m clusterspec.cli.create_cluster --options options.yaml --dry-run -o yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

from clusterspec.deployment.create_cluster import create_cluster
from clusterspec.dns.provider import (
    DEFAULT_DNS_TIMEOUT,
    HostedZoneProvider,
    Route53CliProvider,
    StaticHostedZoneProvider,
)
from clusterspec.exceptions import ClusterSpecError, ValidationError
from clusterspec.models.cluster import Environment, TopologyMode
from clusterspec.models.meta import VersionedObject
from clusterspec.models.options import CreateClusterOptions, MasterPlacementPolicy
from clusterspec.registry.registry import open_registry

STATE_STORE_ENV = "CLUSTERSPEC_STATE_STORE"
DRY_RUN_STORE = "memfs://dry-run"


def render_documents(objects: Sequence[VersionedObject]) -> str:
    """Join objects into one multi-document YAML stream."""
    return "---\n".join(obj.to_yaml() for obj in objects)


def configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def report_error(exc: ClusterSpecError) -> None:
    """Print an error to stderr; validation errors list every violation."""
    if isinstance(exc, ValidationError):
        print("ERROR: cluster specification is invalid:", file=sys.stderr)
        for violation in exc.violations:
            print(f"  - {violation}", file=sys.stderr)
    else:
        print(f"ERROR: {exc}", file=sys.stderr)


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def build_options(args: argparse.Namespace) -> CreateClusterOptions:
    """Merge the options file (if any) with command-line flags."""
    overrides: Dict[str, Any] = {
        "cluster_name": args.name,
        "zones": _split(args.zones),
        "master_zones": _split(args.master_zones),
        "dns_name": args.dns_name,
        "hosted_zone_id": args.hosted_zone_id,
        "network_cidr": args.network_cidr,
        "topology": args.topology,
        "bastion": True if args.bastion else None,
        "environment": args.environment,
        "master_placement": args.master_placement,
        "node_count": args.node_count,
        "node_size": args.node_size,
        "master_size": args.master_size,
        "image": args.image,
        "kubernetes_version": args.kubernetes_version,
        "networking": args.networking,
        "channel": args.channel,
        "ssh_access": _split(args.ssh_access),
        "admin_access": _split(args.admin_access),
    }
    if args.options:
        return CreateClusterOptions.from_file(args.options).merged_with(overrides)
    return CreateClusterOptions.from_dict(
        {k: v for k, v in overrides.items() if v is not None}, source="command line"
    )


def build_dns_provider(args: argparse.Namespace) -> HostedZoneProvider:
    if args.hosted_zones:
        return StaticHostedZoneProvider.from_file(args.hosted_zones)
    return Route53CliProvider(profile=args.aws_profile)


async def _run_create(args: argparse.Namespace) -> int:
    """Handle a create-cluster invocation; returns the process exit code."""
    try:
        options = build_options(args)
        state = args.state or os.environ.get(STATE_STORE_ENV)
        if not state:
            if not args.dry_run:
                print(
                    f"ERROR: no state store given (use --state or set {STATE_STORE_ENV}).",
                    file=sys.stderr,
                )
                return 1
            state = DRY_RUN_STORE
        registry = open_registry(state)
        provider = build_dns_provider(args)

        result = await create_cluster(
            options,
            registry=registry,
            dns_provider=provider,
            dns_timeout=args.timeout,
            dry_run=args.dry_run,
        )
    except ClusterSpecError as exc:
        report_error(exc)
        return 1

    for note in result.diagnostics:
        print(str(note), file=sys.stderr)

    if args.output == "yaml":
        print(render_documents([result.cluster, *result.instance_groups]), end="")
    else:
        verb = "Completed" if args.dry_run else "Created"
        print(
            f"{verb} cluster {result.cluster.name} with instance groups: "
            f"{', '.join(g.name for g in result.instance_groups)}"
        )
    return 0


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clusterspec.cli.create_cluster",
        description="Complete a cluster specification and store it in a registry.",
    )
    parser.add_argument("--options", help="Options YAML file (camelCase keys).")
    parser.add_argument("--name", help="Cluster name, a fully qualified domain name.")
    parser.add_argument("--zones", help="Comma-separated zones, e.g. 'us-east-1a,us-east-1b'.")
    parser.add_argument("--master-zones", help="Comma-separated master zones.")
    parser.add_argument("--dns-name", help="DNS name, if different from the cluster name.")
    parser.add_argument("--hosted-zone-id", help="Pin the hosted zone id (skips the lookup).")
    parser.add_argument("--network-cidr", help="Network block (default: 172.20.0.0/16).")
    parser.add_argument(
        "--topology", choices=[m.value for m in TopologyMode], help="public or private."
    )
    parser.add_argument(
        "--bastion", action="store_true", help="Add a bastion group (private topology)."
    )
    parser.add_argument("--environment", choices=[e.value for e in Environment])
    parser.add_argument(
        "--master-placement",
        choices=[p.value for p in MasterPlacementPolicy],
        help="How to pick master zones when their count would be even.",
    )
    parser.add_argument("--node-count", type=int, help="Number of nodes.")
    parser.add_argument("--node-size", help="Node machine type.")
    parser.add_argument("--master-size", help="Master machine type.")
    parser.add_argument("--image", help="Machine image for every group.")
    parser.add_argument("--kubernetes-version")
    parser.add_argument("--networking", help="Networking mode, e.g. kubenet or weave.")
    parser.add_argument("--channel")
    parser.add_argument("--ssh-access", help="Comma-separated CIDRs allowed to SSH.")
    parser.add_argument("--admin-access", help="Comma-separated CIDRs allowed to the API.")
    parser.add_argument(
        "--state",
        default=None,
        help=f"Registry location, e.g. s3://bucket/prefix (default: ${STATE_STORE_ENV}).",
    )
    zones_group = parser.add_mutually_exclusive_group()
    zones_group.add_argument("--hosted-zones", help="YAML file listing hosted zones.")
    zones_group.add_argument("--aws-profile", help="AWS CLI profile for Route53 lookups.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_DNS_TIMEOUT,
        help=f"Seconds to wait for the hosted zone listing (default: {DEFAULT_DNS_TIMEOUT:g}).",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Complete and validate without storing."
    )
    parser.add_argument("-o", "--output", choices=["summary", "yaml"], default="summary")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point; returns 0 on success and 1 on any failure."""
    args = make_parser().parse_args(argv)
    configure_logging(args.verbose)
    return asyncio.run(_run_create(args))


if __name__ == "__main__":
    sys.exit(main())
