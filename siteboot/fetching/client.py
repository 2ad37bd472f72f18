"""HTTP client for the remote collection's metadata endpoints."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ..core.errors import DownloadFailed, MetadataUnavailable
from ..core.models import CollectionItem

logger = logging.getLogger(__name__)


class CollectionClient:
    """Read-only access to a numbered remote collection.

    Args:
        latest_url: URL returning metadata for the newest item
        item_url_template: URL with an ``{id}`` placeholder for a given item
        timeout: Request timeout in seconds
        transport: Optional httpx transport (used for testing)
    """

    def __init__(
        self,
        latest_url: str,
        item_url_template: str,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.latest_url = latest_url
        self.item_url_template = item_url_template
        self._client = httpx.Client(
            timeout=timeout, follow_redirects=True, transport=transport
        )

    def __enter__(self) -> "CollectionClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get_item(self, url: str) -> CollectionItem:
        try:
            response = self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise MetadataUnavailable(f"Metadata request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise MetadataUnavailable(f"Metadata from {url} is not JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise MetadataUnavailable(f"Metadata from {url} is not an object")
        try:
            return CollectionItem.model_validate(payload)
        except ValidationError as exc:
            raise MetadataUnavailable(f"Metadata from {url} is malformed: {exc}") from exc

    def latest(self) -> CollectionItem:
        return self._get_item(self.latest_url)

    def latest_id(self) -> int:
        latest = self.latest().id
        if latest < 1:
            raise MetadataUnavailable(
                f"Collection at {self.latest_url} reports no items (latest id {latest})"
            )
        return latest

    def item(self, item_id: int) -> CollectionItem:
        return self._get_item(self.item_url_template.format(id=item_id))

    def download(self, url: str) -> bytes:
        """Download a resource and return its body.

        Raises:
            DownloadFailed: On network errors, non-2xx responses or an empty body
        """
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DownloadFailed(f"Download of {url} failed: {exc}") from exc

        if not response.content:
            raise DownloadFailed(f"Download of {url} returned an empty body")
        return response.content
