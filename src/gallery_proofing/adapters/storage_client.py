"""Supabase Storage download client."""

from dataclasses import dataclass
from urllib.parse import quote

import httpx

from gallery_proofing.services.imaging import PhotoStorage

_MISSING_STATUSES = {400, 404}


@dataclass
class HttpxSupabaseStorageClient(PhotoStorage):
    """Fetches photo objects from a Supabase Storage bucket."""

    base_url: str
    service_key: str
    bucket: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, base_url: str, service_key: str, bucket: str
    ) -> "HttpxSupabaseStorageClient":
        """Create a storage client with a managed httpx session."""
        return cls(
            base_url=base_url,
            service_key=service_key,
            bucket=bucket,
            http_client=httpx.AsyncClient(),
        )

    async def fetch(self, path: str) -> bytes | None:
        """Download an object; missing objects come back as ``None``."""
        url = (
            f"{self.base_url.rstrip('/')}/storage/v1/object/"
            f"{self.bucket}/{quote(path.lstrip('/'))}"
        )
        response = await self.http_client.get(
            url,
            headers={
                "Authorization": f"Bearer {self.service_key}",
                "apikey": self.service_key,
            },
            timeout=30,
        )
        if response.status_code in _MISSING_STATUSES:
            return None
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
