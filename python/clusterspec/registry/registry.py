"""
clusterspec/registry/registry.py

The registry client: stores Cluster and InstanceGroup documents in an
ObjectStore with idempotent, name-keyed upserts.

Layout inside the store:
  clusters.index                          ordered cluster names
  <cluster>/config.yaml                   the Cluster
  <cluster>/instancegroup.index           ordered instance group names
  <cluster>/instancegroup/<name>.yaml     each InstanceGroup

Upserting an object whose content (ignoring creationTimestamp) equals the
stored one is a no-op; different content raises RegistryConflictError.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Type, TypeVar
from urllib.parse import urlparse

import yaml
from minio import Minio
from pydantic import ValidationError as PydanticValidationError

from clusterspec.exceptions import InvalidOptionsError, RegistryConflictError, RegistryError
from clusterspec.models.cluster import Cluster
from clusterspec.models.instance_group import InstanceGroup
from clusterspec.models.meta import VersionedObject
from clusterspec.models.minio import MinioSettings
from clusterspec.registry.storage import (
    FileSystemObjectStore,
    MemoryObjectStore,
    MinioObjectStore,
    ObjectStore,
    local_path_from_url,
)

logger = logging.getLogger(__name__)

V = TypeVar("V", bound=VersionedObject)

CLUSTERS_INDEX = "clusters.index"


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _cluster_key(cluster_name: str) -> str:
    return f"{cluster_name}/config.yaml"


def _group_index_key(cluster_name: str) -> str:
    return f"{cluster_name}/instancegroup.index"


def _group_key(cluster_name: str, group_name: str) -> str:
    return f"{cluster_name}/instancegroup/{group_name}.yaml"


class Registry:
    """Persists completed clusters and instance groups in an ObjectStore.

    Args:
        store: Where documents live.
        clock: Source of creation timestamps; pin it for reproducible output.
    """

    def __init__(
        self, store: ObjectStore, clock: Callable[[], datetime] = utc_now
    ) -> None:
        self.store = store
        self._clock = clock
        self._lock = asyncio.Lock()

    def config_base(self, cluster_name: str) -> str:
        """The store URL under which a cluster's documents live."""
        return self.store.url_for(cluster_name)

    async def _read_index(self, key: str) -> List[str]:
        text = await self.store.read(key)
        if text is None:
            return []
        names = yaml.safe_load(text) or []
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise RegistryError(f"Registry index '{key}' is corrupt.")
        return names

    async def _append_index(self, key: str, name: str) -> None:
        names = await self._read_index(key)
        if name not in names:
            await self.store.write(key, yaml.safe_dump(names + [name], default_flow_style=False))

    async def _load(self, key: str, model: Type[V]) -> Optional[V]:
        text = await self.store.read(key)
        if text is None:
            return None
        try:
            return model.from_yaml(text)
        except (yaml.YAMLError, PydanticValidationError) as e:
            raise RegistryError(f"Registry document '{key}' cannot be decoded: {e}") from e

    async def _upsert(self, key: str, index_key: str, obj: V, model: Type[V]) -> V:
        existing = await self._load(key, model)
        if existing is not None:
            if existing.same_content(obj):
                logger.debug("%s %s unchanged in registry", obj.kind, obj.name)
                return existing
            raise RegistryConflictError(obj.kind, obj.name)

        stamped = obj.with_creation_timestamp(
            obj.metadata.creation_timestamp or self._clock()
        )
        await self.store.write(key, stamped.to_yaml())
        await self._append_index(index_key, obj.name)
        logger.info("Stored %s %s at %s", obj.kind, obj.name, self.store.url_for(key))
        return stamped

    async def get_cluster(self, name: str) -> Optional[Cluster]:
        return await self._load(_cluster_key(name), Cluster)

    async def list_clusters(self) -> List[Cluster]:
        """Clusters in insertion order."""
        clusters = []
        for name in await self._read_index(CLUSTERS_INDEX):
            cluster = await self.get_cluster(name)
            if cluster is None:
                raise RegistryError(f"Cluster '{name}' is indexed but has no document.")
            clusters.append(cluster)
        return clusters

    async def upsert_cluster(self, cluster: Cluster) -> Cluster:
        """
        Store a cluster, or confirm an identical one is already stored.

        Raises:
            RegistryConflictError: If a different cluster with this name exists.
        """
        async with self._lock:
            return await self._upsert(
                _cluster_key(cluster.name), CLUSTERS_INDEX, cluster, Cluster
            )

    async def get_instance_group(self, cluster_name: str, name: str) -> Optional[InstanceGroup]:
        return await self._load(_group_key(cluster_name, name), InstanceGroup)

    async def list_instance_groups(self, cluster_name: str) -> List[InstanceGroup]:
        """Instance groups of a cluster in insertion order."""
        groups = []
        for name in await self._read_index(_group_index_key(cluster_name)):
            group = await self.get_instance_group(cluster_name, name)
            if group is None:
                raise RegistryError(
                    f"Instance group '{name}' of cluster '{cluster_name}' is indexed "
                    "but has no document."
                )
            groups.append(group)
        return groups

    async def upsert_instance_group(
        self, cluster_name: str, group: InstanceGroup
    ) -> InstanceGroup:
        """
        Store an instance group of an already stored cluster.

        Raises:
            RegistryError: If the cluster is not stored.
            RegistryConflictError: If a different group with this name exists.
        """
        async with self._lock:
            if await self.store.read(_cluster_key(cluster_name)) is None:
                raise RegistryError(f"Cluster '{cluster_name}' is not in the registry.")
            return await self._upsert(
                _group_key(cluster_name, group.name),
                _group_index_key(cluster_name),
                group,
                InstanceGroup,
            )

    async def find_conflicts(
        self, cluster: Cluster, groups: Sequence[InstanceGroup]
    ) -> List[RegistryConflictError]:
        """Check every object against the registry without writing anything."""
        conflicts = []
        existing_cluster = await self.get_cluster(cluster.name)
        if existing_cluster is not None and not existing_cluster.same_content(cluster):
            conflicts.append(RegistryConflictError(cluster.kind, cluster.name))
        for group in groups:
            existing_group = await self.get_instance_group(cluster.name, group.name)
            if existing_group is not None and not existing_group.same_content(group):
                conflicts.append(RegistryConflictError(group.kind, group.name))
        return conflicts


def open_registry(
    location: str,
    *,
    minio_settings: Optional[MinioSettings] = None,
    minio_client: Optional[Minio] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Registry:
    """
    Open a registry from a store URL.

    Args:
        location: 'memfs://<name>', 's3://<bucket>[/<prefix>]', 'file://<path>' or a path.
        minio_settings: Credentials for s3:// (falls back to CLUSTERSPEC_MINIO_* env vars).
        minio_client: A ready client for s3://, used instead of minio_settings.
        clock: Creation timestamp source (default: current UTC time).

    Raises:
        InvalidOptionsError: On an unknown scheme or missing s3 credentials.
    """
    parsed = urlparse(location)
    store: ObjectStore
    if parsed.scheme == "memfs":
        store = MemoryObjectStore(location)
    elif parsed.scheme == "s3":
        if not parsed.netloc:
            raise InvalidOptionsError(f"State store '{location}' names no bucket.")
        client = minio_client
        if client is None:
            settings = minio_settings or MinioSettings.from_env()
            if settings is None:
                raise InvalidOptionsError(
                    f"State store '{location}' needs Minio credentials "
                    "(set CLUSTERSPEC_MINIO_URL, _ACCESS_KEY and _SECRET_KEY)."
                )
            client = Minio(
                endpoint=settings.endpoint,
                access_key=settings.access_key,
                secret_key=settings.secret_key,
                secure=settings.secure,
            )
        store = MinioObjectStore(client, parsed.netloc, parsed.path)
    elif parsed.scheme == "file":
        store = FileSystemObjectStore(local_path_from_url(parsed.netloc + parsed.path))
    elif parsed.scheme == "":
        store = FileSystemObjectStore(local_path_from_url(location))
    else:
        raise InvalidOptionsError(
            f"Unsupported state store scheme '{parsed.scheme}' in '{location}' "
            "(use memfs://, file://, s3:// or a local path)."
        )
    return Registry(store, clock=clock or utc_now)
