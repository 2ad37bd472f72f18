"""Random remote asset fetcher."""

from __future__ import annotations

import logging
import random
from pathlib import Path

import httpx

from ..core.errors import IOFailure
from ..rendering.io import atomic_write_bytes
from ..settings import Settings
from .client import CollectionClient

logger = logging.getLogger(__name__)


def choose_index(latest: int, rng: random.Random | None = None) -> int:
    """Pick a uniformly random item id in ``[1, latest]``."""
    if latest < 1:
        raise ValueError(f"latest must be >= 1, got {latest}")
    return (rng or random).randint(1, latest)


class RemoteAssetFetcher:
    """Replace the local asset with a randomly chosen item from the collection.

    A failed fetch leaves the current asset untouched; there are no retries,
    the next scheduled invocation simply tries again.
    """

    def __init__(
        self,
        client: CollectionClient,
        asset_path: Path,
        *,
        file_mode: int = 0o644,
        rng: random.Random | None = None,
    ) -> None:
        self.client = client
        self.asset_path = asset_path
        self.file_mode = file_mode
        self.rng = rng

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
        rng: random.Random | None = None,
    ) -> "RemoteAssetFetcher":
        client = CollectionClient(
            settings.latest_url,
            settings.item_url_template,
            timeout=settings.request_timeout,
            transport=transport,
        )
        return cls(client, settings.asset_path, file_mode=settings.file_mode, rng=rng)

    def fetch(self) -> int:
        """Download a random item to the asset path.

        Returns:
            The id of the item that was downloaded

        Raises:
            MetadataUnavailable: When the collection metadata cannot be read
            DownloadFailed: When the image cannot be downloaded
            IOFailure: When the asset cannot be written
        """
        logger.info("Counting posts...")
        latest = self.client.latest_id()

        logger.info(f"Found {latest} posts, picking one at random...")
        item_id = choose_index(latest, self.rng)

        logger.info(f"Finding image URL for post {item_id}...")
        item = self.client.item(item_id)

        logger.info(f"Downloading {item.image_url}...")
        data = self.client.download(item.image_url)

        try:
            atomic_write_bytes(self.asset_path, data, mode=self.file_mode)
        except OSError as exc:
            raise IOFailure(f"Cannot write asset {self.asset_path}: {exc}") from exc
        logger.info(f"Image downloaded to {self.asset_path}.")

        return item_id

    def close(self) -> None:
        self.client.close()
