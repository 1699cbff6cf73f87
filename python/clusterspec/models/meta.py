"""
clusterspec/models/meta.py

Shared pydantic building blocks for the versioned objects stored in a registry:
 - SpecModel: base model with camelCase aliases, frozen, unknown keys rejected.
 - ObjectMeta: name, creationTimestamp and labels.
 - VersionedObject: apiVersion/kind/metadata envelope with YAML round-tripping.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

API_VERSION = "clusterspec/v1alpha1"
CLUSTER_LABEL = "clusterspec.io/cluster"

V = TypeVar("V", bound="VersionedObject")


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as 'YYYY-MM-DDTHH:MM:SSZ' in UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class SpecModel(BaseModel):
    """Base for every serialized object: camelCase keys, immutable, no unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class ObjectMeta(SpecModel):
    """Identity metadata of a stored object.

    Attributes:
        name: The object name, unique within its collection.
        creation_timestamp: Set once by the registry on first persistence.
        labels: Optional key/value labels.
    """

    name: str
    creation_timestamp: Optional[datetime] = None
    labels: Optional[Dict[str, str]] = None

    @field_serializer("creation_timestamp")
    def _serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return format_timestamp(value) if value is not None else None


class VersionedObject(SpecModel):
    """The apiVersion/kind/metadata envelope shared by Cluster and InstanceGroup."""

    api_version: str = API_VERSION
    kind: str
    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain data with camelCase keys, omitting unset (None) fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_yaml(self) -> str:
        """
        Serialize this object to a YAML document using PyYAML.

        Keys are sorted and block style is used so the output is byte-stable
        for equal objects.
        """
        return yaml.safe_dump(self.to_dict(), sort_keys=True, default_flow_style=False)

    @classmethod
    def from_yaml(cls: Type[V], yaml_str: str) -> V:
        """Deserialize an object from a YAML document produced by to_yaml()."""
        return cls.model_validate(yaml.safe_load(yaml_str))

    def with_creation_timestamp(self: V, timestamp: Optional[datetime]) -> V:
        """Return a copy whose metadata carries the given creation timestamp."""
        meta = self.metadata.model_copy(update={"creation_timestamp": timestamp})
        return self.model_copy(update={"metadata": meta})

    def same_content(self, other: VersionedObject) -> bool:
        """Compare two objects ignoring creationTimestamp."""
        return (
            self.with_creation_timestamp(None).to_dict()
            == other.with_creation_timestamp(None).to_dict()
        )
