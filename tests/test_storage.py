import base64

import pytest
import requests

from propertyhub.core.config import StorageConfig
from propertyhub.core.storage import ObjectStorageClient, StorageError, decode_data_url, is_data_url, object_name


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def settings():
    return StorageConfig(base_url="https://storage.example.test/", bucket="property-images", api_key="secret")


@pytest.fixture
def client(settings, logger):
    return ObjectStorageClient(settings, logger=logger)


def test_decode_base64_data_url():
    payload = base64.b64encode(b"jpeg bytes").decode()

    data, content_type = decode_data_url(f"data:image/webp;base64,{payload}")

    assert data == b"jpeg bytes"
    assert content_type == "image/webp"


def test_decode_percent_encoded_data_url_defaults_to_jpeg():
    data, content_type = decode_data_url("data:,hello%20world")

    assert data == b"hello world"
    assert content_type == "image/jpeg"


@pytest.mark.parametrize("value", ["https://img.example.test/a.jpg", "data:image/png;base64,@@not-base64@@"])
def test_decode_rejects_malformed_input(value):
    with pytest.raises(ValueError):
        decode_data_url(value)


def test_is_data_url():
    assert is_data_url("data:image/png;base64,AAAA")
    assert not is_data_url("https://img.example.test/a.jpg")


def test_object_name_layout():
    name = object_name("listing-1", 2, "image/png")
    folder, filename = name.split("/")

    assert folder == "listing-1"
    assert filename.endswith("-image-2.png")
    assert filename.split("-")[0].isdigit()
    assert object_name("listing-1", 0, "application/octet-stream").endswith(".jpg")


def test_upload_posts_to_bucket_path(client, monkeypatch):
    calls = []

    def fake_post(url, data=None, headers=None, timeout=None):
        calls.append((url, data, headers, timeout))
        return FakeResponse(200)

    monkeypatch.setattr(requests, "post", fake_post)

    path = client.upload("listing-1/1-image-0.png", b"bytes", content_type="image/png")

    assert path == "listing-1/1-image-0.png"
    url, data, headers, timeout = calls[0]
    assert url == "https://storage.example.test/storage/v1/object/property-images/listing-1/1-image-0.png"
    assert data == b"bytes"
    assert headers["Authorization"] == "Bearer secret"
    assert headers["Content-Type"] == "image/png"
    assert headers["cache-control"] == "max-age=3600"
    assert headers["x-upsert"] == "false"
    assert timeout == 30


def test_upload_error_status_raises(client, monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(403, "forbidden"))

    with pytest.raises(StorageError, match="403"):
        client.upload("listing-1/x.jpg", b"bytes")


def test_upload_network_error_raises(client, monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "post", fake_post)

    with pytest.raises(StorageError):
        client.upload("listing-1/x.jpg", b"bytes")


def test_public_url(client):
    assert client.get_public_url("listing-1/x.jpg") == (
        "https://storage.example.test/storage/v1/object/public/property-images/listing-1/x.jpg"
    )
