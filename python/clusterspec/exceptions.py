"""
clusterspec/exceptions.py

Error kinds raised while completing and persisting a cluster specification.

All errors derive from ClusterSpecError so callers (e.g. the CLI) can report
any completion failure uniformly.
"""

from __future__ import annotations

from typing import List, Optional


class ClusterSpecError(Exception):
    """Base class for every error raised by clusterspec."""


class InvalidOptionsError(ClusterSpecError):
    """The user-supplied options could not be parsed (bad YAML, unknown keys, bad types)."""


class InvalidZoneError(ClusterSpecError):
    """The zone list is empty, has duplicates, is malformed or spans several regions."""


class NoMatchingHostedZoneError(ClusterSpecError):
    """No hosted zone in the provider catalog owns the cluster DNS name.

    Attributes:
        dns_name (str): The DNS name that could not be matched.
    """

    def __init__(self, dns_name: str, candidates: Optional[List[str]] = None) -> None:
        """
        Initialize a NoMatchingHostedZoneError.

        Args:
            dns_name (str): The cluster DNS name.
            candidates (Optional[List[str]]): Hosted zone names that were considered.
        """
        known = ", ".join(candidates) if candidates else "none"
        super().__init__(
            f"No hosted zone found for DNS name '{dns_name}' (known zones: {known})."
        )
        self.dns_name = dns_name
        self.candidates = candidates or []


class DNSProviderUnavailableError(ClusterSpecError):
    """The hosted zone listing timed out or failed in transport."""


class InsufficientAddressSpaceError(ClusterSpecError):
    """The network block cannot be split into one subnet per zone."""


class UnsupportedConfigurationError(ClusterSpecError):
    """A configuration combination has no defined behaviour (unknown role, networking, ...)."""


class ValidationError(ClusterSpecError):
    """Aggregated invariant violations found on a completed specification.

    Attributes:
        violations (List[str]): Every violation found, in discovery order.
    """

    def __init__(self, violations: List[str]) -> None:
        """
        Initialize a ValidationError.

        Args:
            violations (List[str]): Human-readable violation messages.
        """
        listing = "\n".join(f"  - {v}" for v in violations)
        super().__init__(
            f"Cluster specification is invalid ({len(violations)} problem(s)):\n{listing}"
        )
        self.violations = list(violations)


class RegistryError(ClusterSpecError):
    """A registry key is invalid, or a document is missing its index entry or cannot be decoded."""


class RegistryConflictError(ClusterSpecError):
    """An object with the same name but different content already exists.

    Attributes:
        kind (str): "Cluster" or "InstanceGroup".
        name (str): The conflicting object name.
    """

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(
            f"{kind} '{name}' already exists in the registry with different content."
        )
        self.kind = kind
        self.name = name


__all__ = [
    "ClusterSpecError",
    "InvalidOptionsError",
    "InvalidZoneError",
    "NoMatchingHostedZoneError",
    "DNSProviderUnavailableError",
    "InsufficientAddressSpaceError",
    "UnsupportedConfigurationError",
    "ValidationError",
    "RegistryError",
    "RegistryConflictError",
]
