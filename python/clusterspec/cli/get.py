#!/usr/bin/env python3
"""
clusterspec/cli/get.py

CLI offering two subcommands for reading a registry:

  1) "clusters": list stored clusters.
  2) "instancegroups": list the instance groups of one cluster.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import List, Optional, Sequence

from clusterspec.cli.create_cluster import (
    STATE_STORE_ENV,
    configure_logging,
    render_documents,
    report_error,
)
from clusterspec.exceptions import ClusterSpecError
from clusterspec.models.meta import VersionedObject
from clusterspec.registry.registry import Registry, open_registry


def _print_table(rows: List[List[str]]) -> None:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    for row in rows:
        print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())


def _emit(objects: Sequence[VersionedObject], output: str, rows: List[List[str]]) -> None:
    if output == "yaml":
        print(render_documents(objects), end="")
    else:
        _print_table(rows)


async def _run_clusters(args: argparse.Namespace, registry: Registry) -> None:
    """Handle the 'clusters' subcommand."""
    clusters = await registry.list_clusters()
    if not clusters:
        print("No clusters found.")
        return
    rows = [["NAME", "REGION", "ZONES", "NETWORK"]] + [
        [c.name, c.spec.region, ",".join(c.spec.zones), c.spec.network_cidr]
        for c in clusters
    ]
    _emit(clusters, args.output, rows)


async def _run_instancegroups(args: argparse.Namespace, registry: Registry) -> None:
    """Handle the 'instancegroups' subcommand."""
    groups = await registry.list_instance_groups(args.name)
    if not groups:
        print(f"No instance groups found for cluster {args.name}.")
        return
    rows = [["NAME", "ROLE", "MACHINETYPE", "MIN", "MAX", "ZONES"]] + [
        [
            g.name,
            g.spec.role.value,
            g.spec.machine_type or "",
            str(g.spec.min_size),
            str(g.spec.max_size),
            ",".join(g.spec.zones),
        ]
        for g in groups
    ]
    _emit(groups, args.output, rows)


async def _run(args: argparse.Namespace) -> int:
    state = args.state or os.environ.get(STATE_STORE_ENV)
    if not state:
        print(
            f"ERROR: no state store given (use --state or set {STATE_STORE_ENV}).",
            file=sys.stderr,
        )
        return 1
    try:
        registry = open_registry(state)
        await args.func(args, registry)
    except ClusterSpecError as exc:
        report_error(exc)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for listing registry contents (clusters/instancegroups)."""
    parser = argparse.ArgumentParser(
        prog="clusterspec.cli.get",
        description="List clusters or instance groups stored in a registry.",
    )
    parser.add_argument("--state", default=None, help=f"Registry location (default: ${STATE_STORE_ENV}).")
    parser.add_argument("-o", "--output", choices=["table", "yaml"], default="table")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    subparsers = parser.add_subparsers(dest="command", required=True)

    clusters_parser = subparsers.add_parser("clusters", help="List stored clusters.")
    clusters_parser.set_defaults(func=_run_clusters)

    groups_parser = subparsers.add_parser(
        "instancegroups", help="List the instance groups of a cluster."
    )
    groups_parser.add_argument("--name", required=True, help="Cluster name.")
    groups_parser.set_defaults(func=_run_instancegroups)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
