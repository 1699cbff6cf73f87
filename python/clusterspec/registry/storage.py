"""
clusterspec/registry/storage.py

Defines object stores holding registry documents (YAML text keyed by a
slash-separated path):
  - MemoryObjectStore      (memfs://...)
  - FileSystemObjectStore  (file://... or a plain directory path)
  - MinioObjectStore       (s3://bucket/prefix)

For a non-existent key, every store returns None, so the registry can detect
"not stored yet" and proceed accordingly.
"""

from __future__ import annotations

import asyncio
import io
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import aiofiles.os
from minio import Minio
from minio.error import S3Error

from clusterspec.exceptions import RegistryError

_MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchObject")


class ObjectStore(ABC):
    """Abstract base class for reading/writing registry documents."""

    def __init__(self, location: str) -> None:
        """
        Initialize an ObjectStore.

        Args:
            location (str): The URL this store was opened from, without a trailing
                slash (e.g. 'memfs://tests', 's3://bucket/prefix').
        """
        self.location = location.rstrip("/")

    def url_for(self, key: str) -> str:
        """The externally visible URL of `key` in this store."""
        return f"{self.location}/{key}"

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        """
        Read the document stored at `key`.

        Returns:
            Optional[str]: The document text, or None if nothing is stored there.
        """

    @abstractmethod
    async def write(self, key: str, data: str) -> None:
        """
        Write or overwrite the document at `key`.

        Args:
            key (str): Slash-separated document key.
            data (str): The document text.
        """


class MemoryObjectStore(ObjectStore):
    """
    Keeps documents in a dict owned by this instance; nothing is shared between
    instances, so each test or run gets its own empty store.
    """

    def __init__(self, location: str = "memfs://default") -> None:
        super().__init__(location)
        self.documents: Dict[str, str] = {}

    async def read(self, key: str) -> Optional[str]:
        return self.documents.get(key)

    async def write(self, key: str, data: str) -> None:
        self.documents[key] = data


class FileSystemObjectStore(ObjectStore):
    """
    Stores each document as a file under a root directory. Writes go to a
    temporary file first and are then renamed into place.
    """

    def __init__(self, root: Union[str, Path], location: Optional[str] = None) -> None:
        self.root = Path(root)
        super().__init__(location or f"file://{self.root.resolve()}")

    def _path(self, key: str) -> Path:
        parts = [p for p in key.split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise RegistryError(f"Invalid registry key '{key}'.")
        return self.root.joinpath(*parts)

    async def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            return None

    async def write(self, key: str, data: str) -> None:
        path = self._path(key)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp_path, path)


class MinioObjectStore(ObjectStore):
    """
    Stores documents in a Minio (S3-compatible) bucket under '<prefix>/<key>'.
    The blocking minio client runs in a worker thread.
    """

    def __init__(self, client: Minio, bucket_name: str, prefix: str = "") -> None:
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")
        location = f"s3://{bucket_name}" + (f"/{self.prefix}" if self.prefix else "")
        super().__init__(location)
        self._client = client

    def _object_key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    async def read(self, key: str) -> Optional[str]:
        def do_get_and_read() -> Optional[str]:
            response = None
            try:
                response = self._client.get_object(self.bucket_name, self._object_key(key))
                return response.read().decode("utf-8")
            except S3Error as ex:
                if ex.code in _MISSING_OBJECT_CODES:
                    return None
                raise
            finally:
                if response is not None:
                    response.close()
                    response.release_conn()

        return await asyncio.to_thread(do_get_and_read)

    async def write(self, key: str, data: str) -> None:
        data_bytes = data.encode("utf-8")

        def do_put_object() -> None:
            self._client.put_object(
                bucket_name=self.bucket_name,
                object_name=self._object_key(key),
                data=io.BytesIO(data_bytes),
                length=len(data_bytes),
                content_type="application/yaml",
            )

        await asyncio.to_thread(do_put_object)


def local_path_from_url(path: str) -> str:
    """Expand '~' and environment variables in a local store path."""
    return os.path.expandvars(os.path.expanduser(path))
