"""
clusterspec/models/minio.py

Connection settings for an S3-compatible (Minio) registry store.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "CLUSTERSPEC_MINIO_"


class MinioSettings(BaseModel):
    """
    Represents connection settings to a Minio server.

    Attributes:
        url (str): Full endpoint, e.g. "http://minio.svc:9000".
        access_key (str): The user's access key.
        secret_key (str): The user's secret key.
        secure (bool): If True => https usage, else http. Default True.
    """

    url: str = Field(..., description="Full Minio server endpoint.")
    access_key: str = Field(..., description="Minio access key (username).")
    secret_key: str = Field(..., description="Minio secret key (password).")
    secure: bool = Field(True, description="If True => use https (default).")

    @property
    def endpoint(self) -> str:
        """The host:port part of url, as expected by the minio client."""
        return self.url.replace("http://", "").replace("https://", "")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Optional["MinioSettings"]:
        """
        Build settings from CLUSTERSPEC_MINIO_URL / _ACCESS_KEY / _SECRET_KEY.

        Returns None when no URL is configured. `secure` is derived from the
        URL scheme.
        """
        env = os.environ if environ is None else environ
        url = env.get(f"{ENV_PREFIX}URL")
        if not url:
            return None
        return cls(
            url=url,
            access_key=env.get(f"{ENV_PREFIX}ACCESS_KEY", ""),
            secret_key=env.get(f"{ENV_PREFIX}SECRET_KEY", ""),
            secure=not url.startswith("http://"),
        )
