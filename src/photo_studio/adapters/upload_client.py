"""Remote image store client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from photo_studio.domain.errors import TransportError
from photo_studio.domain.uploads import UploadRequest, UploadResponse

UPLOAD_PATH = "/api/upload"


class UploadClient(Protocol):
    """Interface for transmitting a captured set to the remote store."""

    async def post_images(self, request: UploadRequest) -> UploadResponse:
        """Send the request and return the raw response.

        Raises ``TransportError`` when the request never completes.
        """


@dataclass
class HttpxUploadClient:
    """Upload client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float | None = 30.0

    @classmethod
    def create(cls, base_url: str, timeout: float | None = 30.0) -> "HttpxUploadClient":
        """Create an upload client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    @property
    def upload_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{UPLOAD_PATH}"

    async def post_images(self, request: UploadRequest) -> UploadResponse:
        """POST the images as JSON; any HTTP status is returned, not raised."""
        try:
            response = await self.http_client.post(
                self.upload_url, json=request.to_payload(), timeout=self.timeout
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        return UploadResponse(status_code=response.status_code, text=response.text)

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
