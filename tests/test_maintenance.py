from datetime import timedelta

from conftest import NOW, make_listing, seed
from sqlalchemy import select

from propertyhub.core.models import Category, Listing, Location, PremiumListing
from propertyhub.services.maintenance import refresh_listing_aggregates


async def test_refresh_expires_premium_and_resyncs_promotion(db_client, logger):
    lapsed = make_listing(is_promoted=True)
    running = make_listing(is_promoted=False)
    stale_flag = make_listing(is_promoted=True)
    lapsed_premium = PremiumListing(property_id=lapsed.id, status="active", end_date=NOW - timedelta(hours=1))
    running_premium = PremiumListing(property_id=running.id, status="active", end_date=NOW + timedelta(days=3))
    await seed(db_client, lapsed, running, stale_flag, lapsed_premium, running_premium)

    summary = await refresh_listing_aggregates(db_client, logger, now=NOW)

    assert summary["expired_premium"] == 1
    assert summary["promoted"] == 1
    assert summary["demoted"] == 2

    async with db_client.session() as session:
        flags = {
            listing.id: listing.is_promoted
            for listing in (await session.execute(select(Listing))).scalars()
        }
        premium_status = (await session.get(PremiumListing, lapsed_premium.id)).status

    assert flags == {lapsed.id: False, running.id: True, stale_flag.id: False}
    assert premium_status == "expired"


async def test_refresh_recounts_locations_and_categories(db_client, logger):
    await seed(
        db_client,
        make_listing(),
        make_listing(),
        make_listing(property_type="apartemen", city_id="3171", district_id=None),
        Location(id="31", name="DKI Jakarta", type="provinsi", property_count=99),
        Location(id="3174", name="Jakarta Selatan", type="kota", parent_id="31"),
        Location(id="3171", name="Jakarta Pusat", type="kota", parent_id="31"),
        Location(id="317405", name="Kebayoran Baru", type="kecamatan", parent_id="3174"),
        Location(id="32", name="Jawa Barat", type="provinsi", property_count=7),
        Category(name="Rumah", slug="rumah"),
        Category(name="Apartemen", slug="apartemen"),
        Category(name="Ruko", slug="ruko", property_count=5),
    )

    summary = await refresh_listing_aggregates(db_client, logger, now=NOW)

    async with db_client.session() as session:
        location_counts = dict((await session.execute(select(Location.id, Location.property_count))).all())
        category_counts = dict((await session.execute(select(Category.slug, Category.property_count))).all())

    assert summary["locations"] == 5
    assert summary["categories"] == 3
    assert location_counts == {"31": 3, "3174": 2, "3171": 1, "317405": 2, "32": 0}
    assert category_counts == {"rumah": 2, "apartemen": 1, "ruko": 0}


async def test_refresh_on_empty_database(db_client, logger):
    summary = await refresh_listing_aggregates(db_client, logger, now=NOW)

    assert summary == {"expired_premium": 0, "promoted": 0, "demoted": 0, "locations": 0, "categories": 0}
