"""
Dashboard statistics over listings, profiles, locations and categories.

Every metric is fetched on its own session with its own empty default, so a
failing query only blanks that metric. The metrics are not read under one
snapshot and may disagree slightly if data changes mid-computation.
"""
import asyncio
import random
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from logging import Logger
from typing import Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from propertyhub.core.config import AnalyticsConfig, config
from propertyhub.core.database import DatabaseClient
from propertyhub.core.logger import AppLogger
from propertyhub.core.models import Category, Listing, ListingStatus, Location, PropertyType, Purpose, UserProfile
from propertyhub.core.pricing import PRICE_BANDS, conversion_rate, percentage, price_band, to_billions, to_rupiah
from propertyhub.core.schemas import (
    AgentPerformance,
    AnalyticsSnapshot,
    LocationBreakdown,
    OverviewStats,
    PerformancePoint,
    PopularCategory,
    PopularLocation,
    PriceAnalysis,
    PriceRangeBucket,
    PurposeBreakdown,
    RegistrationPoint,
)
from propertyhub.services.fallback import fallback_snapshot

DATE_RANGES = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

# Which listing column a location row is matched against
LOCATION_COLUMNS = {
    "provinsi": Listing.province_id,
    "kota": Listing.city_id,
    "kecamatan": Listing.district_id,
}


def growth_rate(recent: int, total: int) -> float:
    """Share of new stock relative to what existed before the window, in percent."""
    if recent <= 0:
        return 0.0
    previous = total - recent
    if previous <= 0:
        return 100.0
    return round(recent / previous * 100, 1)


def days_between(start: datetime, end: datetime) -> list[date]:
    days = []
    day = start.date()
    while day <= end.date():
        days.append(day)
        day += timedelta(days=1)
    return days


def _category_type(slug: str) -> Optional[PropertyType]:
    try:
        return PropertyType(slug)
    except ValueError:
        return None


class AnalyticsService:
    def __init__(
            self,
            db_client: DatabaseClient,
            logger: Optional[Logger] = None,
            settings: Optional[AnalyticsConfig] = None,
            rng: Optional[random.Random] = None,
            clock: Callable[[], datetime] = datetime.now,
    ):
        self.db_client = db_client
        self.logger = logger or AppLogger(name="analytics").get_logger()
        self.settings = settings or config.analytics
        self.rng = rng or random.Random()
        self.clock = clock

    async def get_snapshot(self, date_range: Optional[str] = None) -> AnalyticsSnapshot:
        date_range = date_range or self.settings.default_range
        self.logger.info(f"Computing analytics snapshot for {date_range}")

        try:
            end_date = self.clock()
            start_date = end_date - timedelta(days=DATE_RANGES.get(date_range, 30))

            return AnalyticsSnapshot(
                overview=await self.get_overview_stats(),
                listings_by_type=await self.get_listings_by_type(),
                listings_by_location=await self.get_listings_by_location(),
                listings_by_purpose=await self.get_listings_by_purpose(),
                active_listings_today=await self.get_active_listings_count(1),
                active_listings_this_week=await self.get_active_listings_count(7),
                user_registrations=await self.get_user_registrations(start_date, end_date),
                popular_locations=await self.get_popular_locations(),
                popular_categories=await self.get_popular_categories(),
                price_analysis=await self.get_price_analysis(),
                performance_metrics=await self.get_performance_metrics(start_date, end_date),
                agent_performance=await self.get_agent_performance(),
            )
        except Exception as e:
            self.logger.error(f"Analytics snapshot failed, serving fallback data: {e}", exc_info=True)
            return fallback_snapshot(self.clock(), self.rng)

    async def get_overview_stats(self) -> OverviewStats:
        try:
            async with self.db_client.session() as session:
                total_listings = await session.scalar(select(func.count(Listing.id)))
                active_listings = await session.scalar(
                    select(func.count(Listing.id)).where(Listing.status == ListingStatus.active)
                )
                total_users = await session.scalar(select(func.count(UserProfile.id)))
                total_agents = await session.scalar(
                    select(func.count(UserProfile.id)).where(UserProfile.role == "agent")
                )
                total_views, total_inquiries = (
                    await session.execute(
                        select(func.coalesce(func.sum(Listing.views), 0), func.coalesce(func.sum(Listing.inquiries), 0))
                    )
                ).one()
                prices = (await session.execute(select(Listing.price, Listing.price_unit))).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching overview stats: {e}", exc_info=True)
            return OverviewStats()

        # Averaged on the miliar scale
        in_billions = [to_billions(price, unit) for price, unit in prices]
        average_price = round(sum(in_billions) / len(in_billions), 1) if in_billions else 0.0

        return OverviewStats(
            total_listings=total_listings or 0,
            active_listings=active_listings or 0,
            total_users=total_users or 0,
            total_agents=total_agents or 0,
            total_views=total_views,
            total_inquiries=total_inquiries,
            conversion_rate=conversion_rate(total_inquiries, total_views),
            average_price=average_price,
        )

    async def get_listings_by_type(self) -> dict[str, int]:
        try:
            async with self.db_client.session() as session:
                rows = (
                    await session.execute(
                        select(Listing.property_type, func.count(Listing.id))
                        .group_by(Listing.property_type)
                        .order_by(Listing.property_type)
                    )
                ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching listings by type: {e}", exc_info=True)
            return {}

        return {PropertyType(property_type).value: count for property_type, count in rows}

    async def get_listings_by_location(self) -> list[LocationBreakdown]:
        try:
            async with self.db_client.session() as session:
                counts = dict(
                    (
                        await session.execute(
                            select(Listing.province_id, func.count(Listing.id))
                            .where(Listing.province_id.is_not(None))
                            .group_by(Listing.province_id)
                        )
                    ).all()
                )
                if not counts:
                    return []

                provinces = (
                    await session.execute(
                        select(Location.id, Location.name)
                        .where(Location.id.in_(list(counts)), Location.type == "provinsi")
                    )
                ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching listings by location: {e}", exc_info=True)
            return []

        total = sum(counts.values())
        result = [
            LocationBreakdown(province=name, count=counts[province_id], percentage=percentage(counts[province_id], total))
            for province_id, name in provinces
        ]
        result.sort(key=lambda item: item.count, reverse=True)

        return result

    async def get_listings_by_purpose(self) -> PurposeBreakdown:
        try:
            async with self.db_client.session() as session:
                rows = (
                    await session.execute(
                        select(Listing.purpose, func.count(Listing.id)).group_by(Listing.purpose)
                    )
                ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching listings by purpose: {e}", exc_info=True)
            return PurposeBreakdown()

        counts = {Purpose(purpose).value: count for purpose, count in rows}
        return PurposeBreakdown(jual=counts.get("jual", 0), sewa=counts.get("sewa", 0))

    async def get_active_listings_count(self, days: int) -> int:
        since = self.clock() - timedelta(days=days)
        try:
            async with self.db_client.session() as session:
                count = await session.scalar(
                    select(func.count(Listing.id))
                    .where(Listing.status == ListingStatus.active, Listing.created_at >= since)
                )
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching active listings for last {days} days: {e}", exc_info=True)
            return 0

        return count or 0

    async def get_user_registrations(self, start_date: datetime, end_date: datetime) -> list[RegistrationPoint]:
        try:
            async with self.db_client.session() as session:
                created = (
                    await session.execute(
                        select(UserProfile.created_at)
                        .where(UserProfile.created_at >= start_date, UserProfile.created_at <= end_date)
                        .order_by(UserProfile.created_at)
                    )
                ).scalars().all()
                initial_count = await session.scalar(
                    select(func.count(UserProfile.id)).where(UserProfile.created_at < start_date)
                )
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching user registrations: {e}", exc_info=True)
            return []

        per_day = Counter(created_at.date() for created_at in created)
        cumulative = initial_count or 0
        result = []

        for day in days_between(start_date, end_date):
            count = per_day.get(day, 0)
            cumulative += count
            result.append(RegistrationPoint(date=day.isoformat(), count=count, cumulative=cumulative))

        return result

    async def get_popular_locations(self) -> list[PopularLocation]:
        window_start = self.clock() - timedelta(days=self.settings.growth_window_days)
        try:
            async with self.db_client.session() as session:
                rows = (
                    await session.execute(
                        select(Location)
                        .where(Location.property_count > 0)
                        .order_by(Location.property_count.desc())
                        .limit(self.settings.popular_locations_limit)
                    )
                ).scalars().all()

                result = []
                for location in rows:
                    recent = 0
                    column = LOCATION_COLUMNS.get(location.type)
                    if column is not None:
                        recent = await session.scalar(
                            select(func.count(Listing.id))
                            .where(column == location.id, Listing.created_at >= window_start)
                        )
                    result.append(
                        PopularLocation(
                            name=location.name,
                            type=location.type,
                            count=location.property_count or 0,
                            growth=growth_rate(recent or 0, location.property_count or 0),
                        )
                    )
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching popular locations: {e}", exc_info=True)
            return []

        return result

    async def get_popular_categories(self) -> list[PopularCategory]:
        window_start = self.clock() - timedelta(days=self.settings.growth_window_days)
        try:
            async with self.db_client.session() as session:
                rows = (
                    await session.execute(
                        select(Category)
                        .where(Category.property_count > 0)
                        .order_by(Category.property_count.desc())
                    )
                ).scalars().all()

                recent_counts = {}
                for category in rows:
                    property_type = _category_type(category.slug)
                    if property_type is None:
                        recent_counts[category.id] = 0
                        continue
                    recent_counts[category.id] = await session.scalar(
                        select(func.count(Listing.id))
                        .where(Listing.property_type == property_type, Listing.created_at >= window_start)
                    ) or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching popular categories: {e}", exc_info=True)
            return []

        total = sum(category.property_count or 0 for category in rows)

        return [
            PopularCategory(
                name=category.name,
                count=category.property_count or 0,
                percentage=percentage(category.property_count or 0, total),
                growth=growth_rate(recent_counts[category.id], category.property_count or 0),
            )
            for category in rows
        ]

    async def get_price_analysis(self) -> PriceAnalysis:
        try:
            async with self.db_client.session() as session:
                rows = (
                    await session.execute(select(Listing.price, Listing.price_unit, Listing.property_type))
                ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching price analysis: {e}", exc_info=True)
            return PriceAnalysis()

        prices_by_type = defaultdict(list)
        band_counts = Counter()

        for price, unit, property_type in rows:
            prices_by_type[PropertyType(property_type).value].append(to_billions(price, unit))
            band_counts[price_band(to_rupiah(price, unit))] += 1

        average_by_type = {
            property_type: round(sum(prices) / len(prices), 1)
            for property_type, prices in prices_by_type.items()
        }
        total = sum(band_counts.values())
        price_ranges = [
            PriceRangeBucket(range=label, count=band_counts[label], percentage=percentage(band_counts[label], total))
            for label, _ in PRICE_BANDS
        ]

        return PriceAnalysis(average_by_type=average_by_type, price_ranges=price_ranges)

    async def get_performance_metrics(self, start_date: datetime, end_date: datetime) -> list[PerformancePoint]:
        """Daily activity. There is no view/inquiry event history, so those two series are synthetic."""
        try:
            async with self.db_client.session() as session:
                listing_dates = (
                    await session.execute(
                        select(Listing.created_at)
                        .where(Listing.created_at >= start_date, Listing.created_at <= end_date)
                    )
                ).scalars().all()
                user_dates = (
                    await session.execute(
                        select(UserProfile.created_at)
                        .where(UserProfile.created_at >= start_date, UserProfile.created_at <= end_date)
                    )
                ).scalars().all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching performance metrics: {e}", exc_info=True)
            return []

        new_listings = Counter(created_at.date() for created_at in listing_dates)
        new_users = Counter(created_at.date() for created_at in user_dates)

        return [
            PerformancePoint(
                date=day.isoformat(),
                views=self.rng.randint(3000, 7999),
                inquiries=self.rng.randint(200, 599),
                new_listings=new_listings.get(day, 0),
                new_users=new_users.get(day, 0),
            )
            for day in days_between(start_date, end_date)
        ]

    async def get_agent_performance(self) -> list[AgentPerformance]:
        try:
            async with self.db_client.session() as session:
                agents = (
                    await session.execute(
                        select(UserProfile.id, UserProfile.full_name).where(UserProfile.role == "agent")
                    )
                ).all()

            listings_per_agent = await asyncio.gather(*(self._agent_listings(agent_id) for agent_id, _ in agents))
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching agent performance: {e}", exc_info=True)
            return []

        result = []
        for (agent_id, full_name), listings in zip(agents, listings_per_agent):
            if not listings:
                continue

            total_views = sum(views or 0 for _, views, _ in listings)
            total_inquiries = sum(inquiries or 0 for _, _, inquiries in listings)
            result.append(
                AgentPerformance(
                    agent_id=agent_id,
                    agent_name=full_name or "Unknown Agent",
                    total_listings=len(listings),
                    active_listings=sum(1 for status, _, _ in listings if status == ListingStatus.active),
                    total_views=total_views,
                    total_inquiries=total_inquiries,
                    conversion_rate=conversion_rate(total_inquiries, total_views),
                )
            )

        result.sort(key=lambda item: item.total_views, reverse=True)

        return result[:self.settings.top_agents_limit]

    async def _agent_listings(self, agent_id: str) -> list:
        async with self.db_client.session() as session:
            rows = await session.execute(
                select(Listing.status, Listing.views, Listing.inquiries).where(Listing.user_id == agent_id)
            )
            return rows.all()
