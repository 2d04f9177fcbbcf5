"""
View models for the listing UI and the analytics dashboard.

These are never persisted. Fields are snake_case in Python and serialise to
the camelCase keys the frontend expects:

    prop.model_dump(by_alias=True)  # {"priceUnit": "juta", "isPromoted": ...}
"""
import enum
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from propertyhub.core.models import ListingStatus, PriceUnit, PropertyType, Purpose


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------------- Listings -----------------------
class Agent(CamelModel):
    id: str
    name: str = "Unknown Agent"
    phone: str = ""
    email: str = ""
    avatar: Optional[str] = None
    company: Optional[str] = None


class PropertyLocation(CamelModel):
    province: str = ""
    city: str = ""
    district: str = ""
    address: str = ""
    postal_code: Optional[str] = None


class Property(CamelModel):
    id: str
    title: str
    description: str = ""
    price: float
    price_unit: PriceUnit
    type: PropertyType
    purpose: Purpose
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    building_size: Optional[float] = None
    land_size: Optional[float] = None
    location: PropertyLocation
    images: List[str]
    features: List[str] = []
    agent: Agent
    created_at: Optional[datetime] = None
    is_promoted: bool = False
    status: ListingStatus
    views: int = 0
    inquiries: int = 0


class UserListingStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    expired = "expired"
    pending = "pending"


class UserListingLocation(CamelModel):
    city: str = ""
    province: str = ""


class UserListing(CamelModel):
    id: str
    title: str
    type: str
    purpose: Purpose
    price: float
    price_unit: PriceUnit
    status: UserListingStatus
    is_premium: bool = False
    premium_expires_at: Optional[datetime] = None
    views: int = 0
    created_at: Optional[datetime] = None
    image: str
    location: UserListingLocation


class SortOption(str, enum.Enum):
    newest = "newest"
    oldest = "oldest"
    price_asc = "price_asc"
    price_desc = "price_desc"
    views = "views"
    premium = "premium"


class LocationFilter(CamelModel):
    province: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None


class ListingFilters(CamelModel):
    """Query parameters from the listing browser. "all" disables a filter."""

    status: str = "all"
    type: str = "all"
    purpose: str = "all"
    price_range: Optional[Tuple[Optional[float], Optional[float]]] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    location: LocationFilter = Field(default_factory=LocationFilter)
    sort_by: SortOption = SortOption.newest


class ListingFormData(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    property_type: PropertyType
    purpose: Purpose
    price: float = Field(..., gt=0)
    price_unit: PriceUnit
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    building_size: float = Field(default=0, ge=0)
    land_size: float = Field(default=0, ge=0)
    province: str = ""
    city: str = ""
    district: str = ""
    address: str = ""
    features: List[str] = []
    images: List[str] = []


class ListingPage(CamelModel):
    items: List[Property] = []
    total_count: int = 0


# ----------------------- Analytics -----------------------
class OverviewStats(CamelModel):
    total_listings: int = 0
    active_listings: int = 0
    total_users: int = 0
    total_agents: int = 0
    total_views: int = 0
    total_inquiries: int = 0
    conversion_rate: float = 0.0
    average_price: float = 0.0


class LocationBreakdown(CamelModel):
    province: str
    count: int
    percentage: float


class PurposeBreakdown(CamelModel):
    jual: int = 0
    sewa: int = 0


class RegistrationPoint(CamelModel):
    date: str
    count: int
    cumulative: int


class PopularLocation(CamelModel):
    name: str
    type: str
    count: int
    growth: float


class PopularCategory(CamelModel):
    name: str
    count: int
    percentage: float
    growth: float


class PriceRangeBucket(CamelModel):
    range: str
    count: int
    percentage: float


class PriceAnalysis(CamelModel):
    average_by_type: Dict[str, float] = {}
    price_ranges: List[PriceRangeBucket] = []


class PerformancePoint(CamelModel):
    date: str
    views: int
    inquiries: int
    new_listings: int
    new_users: int


class AgentPerformance(CamelModel):
    agent_id: str
    agent_name: str
    total_listings: int
    active_listings: int
    total_views: int
    total_inquiries: int
    conversion_rate: float


class AnalyticsSnapshot(CamelModel):
    overview: OverviewStats
    listings_by_type: Dict[str, int] = {}
    listings_by_location: List[LocationBreakdown] = []
    listings_by_purpose: PurposeBreakdown = Field(default_factory=PurposeBreakdown)
    active_listings_today: int = 0
    active_listings_this_week: int = 0
    user_registrations: List[RegistrationPoint] = []
    popular_locations: List[PopularLocation] = []
    popular_categories: List[PopularCategory] = []
    price_analysis: PriceAnalysis = Field(default_factory=PriceAnalysis)
    performance_metrics: List[PerformancePoint] = []
    agent_performance: List[AgentPerformance] = []
    is_fallback: bool = False
