"""
Pre-signed Azure Blob Storage URLs for direct client upload and playback.

URLs carry a blob-scoped SAS token generated by ``azure-storage-blob`` with
the account key. Without an account key the client runs in test mode and
hands out unsigned URLs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Optional
from urllib.parse import quote

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobSasPermissions, generate_blob_sas
from azure.storage.blob.aio import BlobClient

from config import settings

logger = logging.getLogger(__name__)

READ_PERMISSION = BlobSasPermissions(read=True)
WRITE_PERMISSION = BlobSasPermissions(create=True, write=True)


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_at: datetime
    test_mode: bool


class BlobStorage:
    def __init__(
        self,
        account_name: str,
        account_key: str,
        container: str,
        endpoint: Optional[str] = None,
        ttl_minutes: int = 60,
    ):
        self.account_name = account_name
        self.account_key = account_key or ""
        self.container = container
        self.endpoint = (endpoint or f"https://{account_name}.blob.core.windows.net").rstrip("/")
        self.ttl_minutes = max(int(ttl_minutes), 1)

    @classmethod
    def from_settings(cls) -> "BlobStorage":
        return cls(
            account_name=settings.BLOB_ACCOUNT_NAME,
            account_key=settings.BLOB_ACCOUNT_KEY,
            container=settings.BLOB_CONTAINER,
            endpoint=settings.BLOB_ENDPOINT or None,
            ttl_minutes=settings.BLOB_URL_TTL_MINUTES,
        )

    @property
    def test_mode(self) -> bool:
        return not self.account_key

    def blob_url(self, blob_name: str) -> str:
        return f"{self.endpoint}/{self.container}/{quote(blob_name)}"

    def generate_url(
        self,
        blob_name: str,
        permission: BlobSasPermissions,
        ttl_minutes: Optional[int] = None,
    ) -> SignedUrl:
        expires_at = (datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes or self.ttl_minutes)).replace(microsecond=0)
        base_url = self.blob_url(blob_name)
        if self.test_mode:
            return SignedUrl(url=base_url, expires_at=expires_at, test_mode=True)
        sas_token = generate_blob_sas(
            account_name=self.account_name,
            container_name=self.container,
            blob_name=blob_name,
            account_key=self.account_key,
            permission=permission,
            expiry=expires_at,
            protocol="https" if self.endpoint.startswith("https://") else None,
        )
        return SignedUrl(url=f"{base_url}?{sas_token}", expires_at=expires_at, test_mode=False)

    def generate_upload_url(self, blob_name: str) -> SignedUrl:
        return self.generate_url(blob_name, WRITE_PERMISSION)

    def generate_read_url(self, blob_name: str) -> SignedUrl:
        return self.generate_url(blob_name, READ_PERMISSION)

    def _blob_client(self, blob_name: str) -> BlobClient:
        return BlobClient(
            account_url=self.endpoint,
            container_name=self.container,
            blob_name=blob_name,
            credential={"account_name": self.account_name, "account_key": self.account_key},
        )

    async def delete_blob(self, blob_name: str) -> None:
        if self.test_mode:
            logger.info("Blob storage in test mode; skipping delete of %s", blob_name)
            return
        async with self._blob_client(blob_name) as client:
            try:
                await client.delete_blob(delete_snapshots="include")
            except ResourceNotFoundError:
                logger.info("Blob %s already deleted", blob_name)
