"""
Pytest configuration and fixtures for siteboot tests.
"""

import re
from pathlib import Path

import httpx
import pytest

LATEST_URL = "https://comics.test/info.0.json"
ITEM_URL_TEMPLATE = "https://comics.test/{id}/info.0.json"
IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake-image"

_ITEM_PATH = re.compile(r"^/(\d+)/info\.0\.json$")


class FakeCollection:
    """In-memory stand-in for the remote collection, served over MockTransport."""

    def __init__(self, latest: int = 5, image: bytes = IMAGE_BYTES) -> None:
        self.latest = latest
        self.image = image
        self.latest_payload: object = None
        self.item_image_url: str | None = None
        self.metadata_status = 200
        self.image_status = 200
        self.requested_ids: list[int] = []
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        if request.url.host == "images.test":
            return httpx.Response(self.image_status, content=self.image)

        if self.metadata_status != 200:
            return httpx.Response(self.metadata_status, text="unavailable")

        if request.url.path == "/info.0.json":
            payload = self.latest_payload
            if payload is None:
                payload = {"num": self.latest, "img": self._image_url(self.latest)}
            return httpx.Response(200, json=payload)

        match = _ITEM_PATH.match(request.url.path)
        if match:
            item_id = int(match.group(1))
            self.requested_ids.append(item_id)
            image_url = self.item_image_url or self._image_url(item_id)
            return httpx.Response(200, json={"num": item_id, "img": image_url})

        return httpx.Response(404)

    @staticmethod
    def _image_url(item_id: int) -> str:
        return f"https://images.test/comics/{item_id}.png"

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def collection():
    """Provide a fake remote collection with five items."""
    return FakeCollection()


@pytest.fixture
def site_dir(tmp_path):
    """Provide a served-content directory."""
    path = tmp_path / "html"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path, site_dir):
    """Settings pointing every path into the temporary directory."""
    from siteboot.settings import Settings

    return Settings(
        latest_url=LATEST_URL,
        item_url_template=ITEM_URL_TEMPLATE,
        asset_path=site_dir / "image.png",
        template_path=site_dir / "index.html",
        log_path=tmp_path / "log" / "cron.log",
        forward_poll_seconds=0.02,
    )


def wait_for(predicate, timeout: float = 10.0, interval: float = 0.02) -> bool:
    """Poll ``predicate`` until it returns True or ``timeout`` elapses."""
    import time

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def read(path: Path) -> str:
    return path.read_text(encoding="utf-8")
