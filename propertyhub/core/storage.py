import base64
import binascii
import re
import time
from logging import Logger
from urllib.parse import unquote_to_bytes

import requests

from propertyhub.core.config import StorageConfig
from propertyhub.core.logger import AppLogger

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<params>(;[\w-]+=[\w-]+)*)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "video/mp4": "mp4",
}


class StorageError(Exception):
    pass


def is_data_url(value: str) -> bool:
    return value.startswith("data:")


def decode_data_url(value: str) -> tuple[bytes, str]:
    """Split a data URL into its payload and content type."""
    match = DATA_URL_PATTERN.match(value)
    if not match:
        raise ValueError("Not a data URL")

    content_type = match.group("mime") or "image/jpeg"
    payload = match.group("data")

    if match.group("b64"):
        try:
            return base64.b64decode(payload, validate=True), content_type
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

    return unquote_to_bytes(payload), content_type


def object_name(listing_id: str, index: int, content_type: str) -> str:
    extension = EXTENSIONS.get(content_type, "jpg")
    return f"{listing_id}/{int(time.time() * 1000)}-image-{index}.{extension}"


class ObjectStorageClient:
    """Binary object storage behind a REST endpoint (bucket/path addressing)."""

    def __init__(self, settings: StorageConfig, logger: Logger | None = None):
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.logger = logger or AppLogger(name="storage").get_logger()

    def upload(
            self,
            path: str,
            data: bytes,
            content_type: str = "image/jpeg",
            cache_control: str | None = None,
            upsert: bool = False,
    ) -> str:
        url = f"{self.base_url}/storage/v1/object/{self.settings.bucket}/{path}"
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": content_type,
            "cache-control": f"max-age={cache_control or self.settings.cache_control}",
            "x-upsert": "true" if upsert else "false",
        }

        try:
            response = requests.post(url, data=data, headers=headers, timeout=self.settings.timeout)
        except requests.RequestException as e:
            raise StorageError(f"Upload of {path} failed: {e}") from e

        if response.status_code not in (200, 201):
            raise StorageError(f"Upload of {path} failed: {response.status_code} - {response.text}")

        self.logger.debug(f"Uploaded {len(data)} bytes to {path}")
        return path

    def get_public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.settings.bucket}/{path}"
