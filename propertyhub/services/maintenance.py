from datetime import datetime
from logging import Logger

from sqlalchemy import func, select, update

from propertyhub.core.database import DatabaseClient
from propertyhub.core.models import Category, Listing, Location, PremiumListing, PropertyType
from propertyhub.services.analytics import LOCATION_COLUMNS


async def refresh_listing_aggregates(db_client: DatabaseClient, logger: Logger, now: datetime | None = None) -> dict:
    """Expire lapsed premium records, resync promotion flags and recount locations and categories."""
    m_logger = logger.getChild("maintenance")
    now = now or datetime.now()

    async with db_client.transaction() as session:
        expired = await session.execute(
            update(PremiumListing)
            .where(PremiumListing.status == "active", PremiumListing.end_date <= now)
            .values(status="expired")
            .execution_options(synchronize_session=False)
        )

        promoted_ids = select(PremiumListing.property_id).where(
            PremiumListing.status == "active", PremiumListing.end_date > now
        )
        promoted = await session.execute(
            update(Listing)
            .where(Listing.id.in_(promoted_ids), Listing.is_promoted.is_(False))
            .values(is_promoted=True)
            .execution_options(synchronize_session=False)
        )
        demoted = await session.execute(
            update(Listing)
            .where(Listing.id.not_in(promoted_ids), Listing.is_promoted.is_(True))
            .values(is_promoted=False)
            .execution_options(synchronize_session=False)
        )

        locations = (await session.execute(select(Location))).scalars().all()
        for location_type, column in LOCATION_COLUMNS.items():
            counts = dict(
                (
                    await session.execute(
                        select(column, func.count(Listing.id)).where(column.is_not(None)).group_by(column)
                    )
                ).all()
            )
            for location in locations:
                if location.type == location_type:
                    location.property_count = counts.get(location.id, 0)

        type_counts = {
            PropertyType(property_type).value: count
            for property_type, count in (
                await session.execute(
                    select(Listing.property_type, func.count(Listing.id)).group_by(Listing.property_type)
                )
            ).all()
        }
        categories = (await session.execute(select(Category))).scalars().all()
        for category in categories:
            category.property_count = type_counts.get(category.slug, 0)

    summary = {
        "expired_premium": expired.rowcount,
        "promoted": promoted.rowcount,
        "demoted": demoted.rowcount,
        "locations": len(locations),
        "categories": len(categories),
    }
    m_logger.info(f"Listing aggregates refreshed: {summary}")

    return summary
