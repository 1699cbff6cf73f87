"""
clusterspec/dns/__init__.py

Hosted zone providers (the "list hosted zones" capability).
"""

from clusterspec.dns.provider import (
    HostedZoneProvider,
    Route53CliProvider,
    StaticHostedZoneProvider,
    fetch_hosted_zones,
)

__all__ = [
    "HostedZoneProvider",
    "Route53CliProvider",
    "StaticHostedZoneProvider",
    "fetch_hosted_zones",
]
