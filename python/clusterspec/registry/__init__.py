"""
clusterspec/registry/__init__.py

Exports:
  - Registry and open_registry
  - Object stores (ObjectStore, MemoryObjectStore, FileSystemObjectStore, MinioObjectStore)
"""

from clusterspec.registry.registry import Registry, open_registry
from clusterspec.registry.storage import (
    FileSystemObjectStore,
    MemoryObjectStore,
    MinioObjectStore,
    ObjectStore,
)

__all__ = [
    "Registry",
    "open_registry",
    "ObjectStore",
    "MemoryObjectStore",
    "FileSystemObjectStore",
    "MinioObjectStore",
]
