"""
clusterspec/models/dns.py

Pydantic models for the hosted zone catalog returned by a DNS provider.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

HOSTED_ZONE_ID_PREFIX = "/hostedzone/"


def normalize_dns_name(name: str) -> str:
    """Lower-case a DNS name and drop any trailing dots."""
    return name.strip().rstrip(".").lower()


def normalize_hosted_zone_id(value: str) -> str:
    """
    Strip a leading '/hostedzone/' from a hosted zone id.

    Raises:
        ValueError: If nothing is left of the id.
    """
    value = value.strip()
    if value.startswith(HOSTED_ZONE_ID_PREFIX):
        value = value[len(HOSTED_ZONE_ID_PREFIX) :]
    if not value:
        raise ValueError("Hosted zone id must not be empty.")
    return value


class HostedZone(BaseModel):
    """A DNS provider's record of authority over a domain.

    Attributes:
        name (str): Zone name, usually with a trailing dot ('example.com.').
        id (str): Provider-assigned id; a leading '/hostedzone/' is stripped.
        private (bool): True for zones only visible inside a private network.
    """

    name: str = Field(..., description="Hosted zone DNS name.")
    id: str = Field(..., description="Provider-assigned hosted zone id.")
    private: bool = False

    model_config = {"frozen": True}

    @field_validator("id")
    @classmethod
    def strip_id_prefix(cls, value: str) -> str:
        """Route53 reports ids as '/hostedzone/<ID>'; keep only '<ID>'."""
        return normalize_hosted_zone_id(value)

    @property
    def normalized_name(self) -> str:
        return normalize_dns_name(self.name)


class HostedZoneCatalog(BaseModel):
    """A list of hosted zones, as written in a --hosted-zones YAML file."""

    hosted_zones: List[HostedZone] = Field(default_factory=list, alias="hostedZones")

    model_config = {"populate_by_name": True, "extra": "forbid"}
