"""
clusterspec/models/completion.py

Result types produced by the completion pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from clusterspec.models.cluster import Cluster
from clusterspec.models.instance_group import InstanceGroup


class DiagnosticLevel(str, Enum):
    info = "info"
    warning = "warning"


class Diagnostic(BaseModel):
    """A non-fatal note about a decision taken during completion."""

    level: DiagnosticLevel
    message: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.level.value}: {self.message}"


class CompletionResult(BaseModel):
    """A completed, validated cluster and its instance groups in creation order."""

    cluster: Cluster
    instance_groups: List[InstanceGroup]
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.warning]
