"""
Tests for the random remote asset fetcher.
"""

import random

import httpx
import pytest

from siteboot.core.errors import DownloadFailed, MetadataUnavailable
from siteboot.core.models import CollectionItem
from siteboot.fetching.client import CollectionClient
from siteboot.fetching.fetcher import RemoteAssetFetcher, choose_index
from tests.conftest import IMAGE_BYTES, ITEM_URL_TEMPLATE, LATEST_URL


@pytest.fixture
def fetcher(collection, settings):
    fetcher = RemoteAssetFetcher.from_settings(
        settings, transport=collection.transport, rng=random.Random(7)
    )
    yield fetcher
    fetcher.close()


@pytest.mark.parametrize("latest", [1, 2, 3, 10, 2000])
def test_choose_index_in_range(latest):
    rng = random.Random(latest)
    picks = {choose_index(latest, rng) for _ in range(200)}
    assert min(picks) >= 1
    assert max(picks) <= latest


def test_choose_index_covers_both_ends():
    rng = random.Random(0)
    picks = {choose_index(3, rng) for _ in range(200)}
    assert picks == {1, 2, 3}


def test_choose_index_rejects_empty_collection():
    with pytest.raises(ValueError):
        choose_index(0)


def test_collection_item_accepts_both_field_names():
    assert CollectionItem.model_validate({"num": 3, "img": "u"}).id == 3
    item = CollectionItem.model_validate({"id": 4, "imageURL": "v"})
    assert (item.id, item.image_url) == (4, "v")


def test_fetch_writes_asset(fetcher, collection, settings):
    item_id = fetcher.fetch()

    assert 1 <= item_id <= collection.latest
    assert collection.requested_ids == [item_id]
    assert settings.asset_path.read_bytes() == IMAGE_BYTES
    assert collection.requests[-1] == f"https://images.test/comics/{item_id}.png"


def test_fetch_replaces_existing_asset(fetcher, settings):
    settings.asset_path.write_bytes(b"old")
    fetcher.fetch()
    assert settings.asset_path.read_bytes() == IMAGE_BYTES
    leftovers = [p.name for p in settings.asset_path.parent.iterdir()]
    assert leftovers == ["image.png"]


def test_fetch_picks_within_latest(collection, settings):
    collection.latest = 4
    for seed in range(25):
        fetcher = RemoteAssetFetcher.from_settings(
            settings, transport=collection.transport, rng=random.Random(seed)
        )
        fetcher.fetch()
        fetcher.close()
    assert all(1 <= k <= 4 for k in collection.requested_ids)


@pytest.mark.parametrize("existing", [b"previous image", None])
def test_metadata_failure_leaves_asset_untouched(fetcher, collection, settings, existing):
    if existing is not None:
        settings.asset_path.write_bytes(existing)
    collection.metadata_status = 503

    with pytest.raises(MetadataUnavailable):
        fetcher.fetch()

    if existing is None:
        assert not settings.asset_path.exists()
    else:
        assert settings.asset_path.read_bytes() == existing


@pytest.mark.parametrize(
    "payload",
    [
        {"num": "not-a-number", "img": "x"},
        {"img": "x"},
        {"num": None, "img": "x"},
        {"num": 0, "img": "x"},
        ["not", "an", "object"],
    ],
)
def test_malformed_metadata(fetcher, collection, settings, payload):
    collection.latest_payload = payload
    with pytest.raises(MetadataUnavailable):
        fetcher.fetch()
    assert not settings.asset_path.exists()


def test_non_json_metadata(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    with CollectionClient(LATEST_URL, ITEM_URL_TEMPLATE, transport=transport) as client:
        with pytest.raises(MetadataUnavailable):
            client.latest_id()


def test_network_error_is_metadata_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with CollectionClient(
        LATEST_URL, ITEM_URL_TEMPLATE, transport=httpx.MockTransport(handler)
    ) as client:
        with pytest.raises(MetadataUnavailable):
            client.latest_id()


@pytest.mark.parametrize("status, body", [(404, b"missing"), (200, b"")])
def test_download_failure_leaves_asset_untouched(
    fetcher, collection, settings, status, body
):
    settings.asset_path.write_bytes(b"previous image")
    collection.image_status = status
    collection.image = body

    with pytest.raises(DownloadFailed):
        fetcher.fetch()

    assert settings.asset_path.read_bytes() == b"previous image"


def test_item_url_template(collection):
    with CollectionClient(
        LATEST_URL, ITEM_URL_TEMPLATE, transport=collection.transport
    ) as client:
        item = client.item(3)
    assert item.id == 3
    assert collection.requests == ["https://comics.test/3/info.0.json"]


@pytest.mark.parametrize("image_url", ["http://[::1/a.png", "https://\x00bad/a.png"])
def test_unparseable_image_url_is_download_failure(fetcher, collection, settings, image_url):
    settings.asset_path.write_bytes(b"previous image")
    collection.item_image_url = image_url

    with pytest.raises(DownloadFailed):
        fetcher.fetch()

    assert settings.asset_path.read_bytes() == b"previous image"


def test_unparseable_metadata_url_is_metadata_unavailable(collection):
    with CollectionClient(
        "http://[::1/info.0.json", ITEM_URL_TEMPLATE, transport=collection.transport
    ) as client:
        with pytest.raises(MetadataUnavailable):
            client.latest_id()
