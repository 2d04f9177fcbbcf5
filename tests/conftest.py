import logging
from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from propertyhub.core.database import DatabaseClient
from propertyhub.core.models import (
    Listing,
    ListingStatus,
    PriceUnit,
    PropertyMedia,
    PropertyType,
    Purpose,
    new_id,
)
from propertyhub.core.storage import StorageError

NOW = datetime(2026, 10, 18, 12, 0, 0)


class FakeStorage:
    """Stands in for ObjectStorageClient, records uploads instead of sending them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    def upload(self, path, data, content_type="image/jpeg", cache_control=None, upsert=False):
        if self.fail:
            raise StorageError("storage offline")
        self.uploads.append((path, data, content_type))
        return path

    def get_public_url(self, path):
        return f"https://cdn.example.test/property-images/{path}"


@pytest.fixture
def logger():
    return logging.getLogger("propertyhub.tests")


@pytest_asyncio.fixture
async def db_client(tmp_path, logger):
    client = DatabaseClient(url=f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}", logger=logger)
    await client.create_models()
    yield client
    await client.cleanup()


@pytest_asyncio.fixture
async def broken_db_client(tmp_path, logger):
    """A client whose database has no tables, so every query fails."""
    client = DatabaseClient(url=f"sqlite+aiosqlite:///{tmp_path / 'empty.sqlite'}", logger=logger)
    yield client
    await client.cleanup()


def make_listing(**overrides) -> Listing:
    values = {
        "id": new_id(),
        "user_id": "user-1",
        "title": "Rumah Minimalis",
        "description": "Dekat stasiun",
        "price": 750,
        "price_unit": PriceUnit.juta,
        "property_type": PropertyType.rumah,
        "purpose": Purpose.jual,
        "bedrooms": 3,
        "bathrooms": 2,
        "province_id": "31",
        "city_id": "3174",
        "district_id": "317405",
        "status": ListingStatus.active,
        "views": 0,
        "inquiries": 0,
        "is_promoted": False,
        "created_at": NOW - timedelta(days=3),
    }
    values.update(overrides)
    return Listing(**values)


def make_media(listing_id: str, count: int = 1) -> list[PropertyMedia]:
    return [
        PropertyMedia(
            listing_id=listing_id,
            media_url=f"https://img.example.test/{listing_id}/{index}.jpg",
            is_primary=index == 0,
        )
        for index in range(count)
    ]


async def seed(db_client: DatabaseClient, *rows):
    async with db_client.transaction() as session:
        session.add_all(rows)
