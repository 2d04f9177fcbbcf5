import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, declarative_base, relationship

meta = MetaData()
Base = declarative_base(metadata=meta)


def new_id() -> str:
    return str(uuid.uuid4())


class ListingStatus(str, enum.Enum):
    active = "active"
    draft = "draft"
    inactive = "inactive"
    pending = "pending"
    rejected = "rejected"
    rented = "rented"
    sold = "sold"


class PropertyType(str, enum.Enum):
    rumah = "rumah"
    apartemen = "apartemen"
    kondominium = "kondominium"
    ruko = "ruko"
    gedung_komersial = "gedung_komersial"
    ruang_industri = "ruang_industri"
    tanah = "tanah"
    lainnya = "lainnya"


class Purpose(str, enum.Enum):
    jual = "jual"
    sewa = "sewa"


class PriceUnit(str, enum.Enum):
    juta = "juta"
    miliar = "miliar"


class Listing(Base):
    __tablename__ = "listings"

    id: Mapped[str] = Column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = Column(String(36), index=True, nullable=False)
    title: Mapped[str] = Column(String(200), nullable=False)
    description: Mapped[str] = Column(Text, default="")

    # Price is stored in its own unit, see PriceUnit
    price: Mapped[float] = Column(Float, nullable=False)
    price_unit: Mapped[PriceUnit] = Column(Enum(PriceUnit), nullable=False)

    property_type: Mapped[PropertyType] = Column(Enum(PropertyType), index=True, nullable=False)
    purpose: Mapped[Purpose] = Column(Enum(Purpose), nullable=False)
    bedrooms: Mapped[Optional[int]] = Column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = Column(Integer, nullable=True)
    building_size: Mapped[Optional[float]] = Column(Float, nullable=True)
    land_size: Mapped[Optional[float]] = Column(Float, nullable=True)

    # Location ids reference the static location table
    province_id: Mapped[Optional[str]] = Column(String(20), index=True, nullable=True)
    city_id: Mapped[Optional[str]] = Column(String(20), index=True, nullable=True)
    district_id: Mapped[Optional[str]] = Column(String(20), nullable=True)
    address: Mapped[Optional[str]] = Column(Text, nullable=True)
    postal_code: Mapped[Optional[str]] = Column(String(10), nullable=True)
    features: Mapped[Optional[list]] = Column(JSON, nullable=True)

    status: Mapped[ListingStatus] = Column(Enum(ListingStatus), index=True, default=ListingStatus.pending)
    views: Mapped[int] = Column(Integer, default=0, nullable=False)
    inquiries: Mapped[int] = Column(Integer, default=0, nullable=False)
    is_promoted: Mapped[bool] = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = Column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    media = relationship(
        "PropertyMedia",
        back_populates="listing",
        order_by=lambda: PropertyMedia.is_primary.desc(),
    )

    def __repr__(self):
        return f"<Listing(id={self.id}, price={self.price} {self.price_unit.value}, status={self.status.value})>"


class PropertyMedia(Base):
    __tablename__ = "property_media"

    id: Mapped[str] = Column(String(36), primary_key=True, default=new_id)
    listing_id: Mapped[str] = Column(String(36), ForeignKey("listings.id"), index=True, nullable=False)
    media_url: Mapped[str] = Column(Text, nullable=False)
    media_type: Mapped[str] = Column(String(20), default="image")
    is_primary: Mapped[bool] = Column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = Column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    listing = relationship("Listing", back_populates="media")


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id: Mapped[str] = Column(String(36), primary_key=True, default=new_id)
    full_name: Mapped[Optional[str]] = Column(String(150), nullable=True)
    email: Mapped[Optional[str]] = Column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = Column(String(30), nullable=True)
    avatar_url: Mapped[Optional[str]] = Column(Text, nullable=True)
    company: Mapped[Optional[str]] = Column(String(150), nullable=True)
    role: Mapped[str] = Column(String(20), default="user", index=True)  # user | agent | admin
    created_at: Mapped[datetime] = Column(DateTime, default=datetime.now, index=True)


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[str] = Column(String(20), primary_key=True)
    name: Mapped[str] = Column(String(150), nullable=False)
    type: Mapped[str] = Column(String(20), index=True)  # provinsi | kota | kecamatan
    parent_id: Mapped[Optional[str]] = Column(String(20), nullable=True)
    property_count: Mapped[int] = Column(Integer, default=0, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = Column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = Column(String(100), nullable=False)
    slug: Mapped[str] = Column(String(50), unique=True, nullable=False)  # matches listings.property_type
    property_count: Mapped[int] = Column(Integer, default=0, nullable=False)


class PremiumListing(Base):
    __tablename__ = "premium_listings"

    id: Mapped[str] = Column(String(36), primary_key=True, default=new_id)
    property_id: Mapped[str] = Column(String(36), ForeignKey("listings.id"), index=True, nullable=False)
    user_id: Mapped[Optional[str]] = Column(String(36), nullable=True)
    status: Mapped[str] = Column(String(20), default="active", index=True)  # active | expired | cancelled
    start_date: Mapped[datetime] = Column(DateTime, default=datetime.now)
    end_date: Mapped[datetime] = Column(DateTime, nullable=False)
    created_at: Mapped[datetime] = Column(DateTime, default=datetime.now)
