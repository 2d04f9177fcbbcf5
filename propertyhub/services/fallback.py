"""Static demonstration snapshot served when analytics cannot be computed at all."""
import random
from datetime import datetime, timedelta

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

FALLBACK_DAYS = 30


def fallback_snapshot(now: datetime | None = None, rng: random.Random | None = None) -> AnalyticsSnapshot:
    now = now or datetime.now()
    rng = rng or random.Random()
    days = [(now - timedelta(days=FALLBACK_DAYS - 1 - i)).strftime("%Y-%m-%d") for i in range(FALLBACK_DAYS)]

    return AnalyticsSnapshot(
        overview=OverviewStats(
            total_listings=8921,
            active_listings=7834,
            total_users=12543,
            total_agents=1247,
            total_views=156789,
            total_inquiries=8934,
            conversion_rate=5.7,
            average_price=2.8,
        ),
        listings_by_type={
            "rumah": 3456,
            "apartemen": 2134,
            "ruko": 1245,
            "tanah": 987,
            "kondominium": 654,
            "gedung_komersial": 321,
            "ruang_industri": 124,
        },
        listings_by_location=[
            LocationBreakdown(province="DKI Jakarta", count=2845, percentage=31.9),
            LocationBreakdown(province="Jawa Barat", count=1987, percentage=22.3),
            LocationBreakdown(province="Jawa Timur", count=1234, percentage=13.8),
            LocationBreakdown(province="Banten", count=987, percentage=11.1),
            LocationBreakdown(province="Jawa Tengah", count=765, percentage=8.6),
            LocationBreakdown(province="Bali", count=543, percentage=6.1),
            LocationBreakdown(province="Sumatera Utara", count=321, percentage=3.6),
            LocationBreakdown(province="Lainnya", count=239, percentage=2.7),
        ],
        listings_by_purpose=PurposeBreakdown(jual=6234, sewa=2687),
        active_listings_today=45,
        active_listings_this_week=287,
        user_registrations=[
            RegistrationPoint(date=day, count=rng.randint(15, 84), cumulative=12000 + i * 18)
            for i, day in enumerate(days)
        ],
        popular_locations=[
            PopularLocation(name="Jakarta Selatan", type="kota", count=1245, growth=12.5),
            PopularLocation(name="Bandung", type="kota", count=987, growth=8.3),
            PopularLocation(name="Surabaya", type="kota", count=765, growth=15.2),
            PopularLocation(name="Tangerang Selatan", type="kota", count=654, growth=22.1),
            PopularLocation(name="Bekasi", type="kota", count=543, growth=6.7),
            PopularLocation(name="Depok", type="kota", count=432, growth=9.4),
            PopularLocation(name="Bogor", type="kota", count=321, growth=4.8),
            PopularLocation(name="Jakarta Pusat", type="kota", count=298, growth=7.2),
        ],
        popular_categories=[
            PopularCategory(name="Rumah", count=3456, percentage=38.7, growth=8.5),
            PopularCategory(name="Apartemen", count=2134, percentage=23.9, growth=12.3),
            PopularCategory(name="Ruko", count=1245, percentage=14.0, growth=5.7),
            PopularCategory(name="Tanah", count=987, percentage=11.1, growth=15.2),
            PopularCategory(name="Kondominium", count=654, percentage=7.3, growth=18.9),
            PopularCategory(name="Gedung Komersial", count=321, percentage=3.6, growth=3.4),
            PopularCategory(name="Ruang Industri", count=124, percentage=1.4, growth=7.8),
        ],
        price_analysis=PriceAnalysis(
            average_by_type={
                "rumah": 2.8,
                "apartemen": 1.9,
                "ruko": 4.2,
                "tanah": 3.5,
                "kondominium": 5.1,
                "gedung_komersial": 12.5,
                "ruang_industri": 8.7,
            },
            price_ranges=[
                PriceRangeBucket(range="< 500 Juta", count=2134, percentage=23.9),
                PriceRangeBucket(range="500 Juta - 1 Miliar", count=2987, percentage=33.5),
                PriceRangeBucket(range="1 - 2 Miliar", count=1876, percentage=21.0),
                PriceRangeBucket(range="2 - 5 Miliar", count=1234, percentage=13.8),
                PriceRangeBucket(range="5 - 10 Miliar", count=456, percentage=5.1),
                PriceRangeBucket(range="> 10 Miliar", count=234, percentage=2.6),
            ],
        ),
        performance_metrics=[
            PerformancePoint(
                date=day,
                views=rng.randint(3000, 7999),
                inquiries=rng.randint(200, 599),
                new_listings=rng.randint(20, 79),
                new_users=rng.randint(15, 49),
            )
            for day in days
        ],
        agent_performance=[
            AgentPerformance(agent_id="a3", agent_name="Anton Wijaya", total_listings=52, active_listings=41,
                             total_views=15234, total_inquiries=678, conversion_rate=4.5),
            AgentPerformance(agent_id="a1", agent_name="Budi Santoso", total_listings=45, active_listings=38,
                             total_views=12456, total_inquiries=567, conversion_rate=4.6),
            AgentPerformance(agent_id="a5", agent_name="Hendro Wijaya", total_listings=33, active_listings=28,
                             total_views=10234, total_inquiries=456, conversion_rate=4.5),
            AgentPerformance(agent_id="a2", agent_name="Sinta Dewi", total_listings=38, active_listings=32,
                             total_views=9876, total_inquiries=432, conversion_rate=4.4),
            AgentPerformance(agent_id="a4", agent_name="Diana Putri", total_listings=29, active_listings=25,
                             total_views=8765, total_inquiries=398, conversion_rate=4.5),
        ],
        is_fallback=True,
    )
