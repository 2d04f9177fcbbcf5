"""
Row -> view model conversion.

Everything here is pure: missing media, profiles or unknown location ids
degrade to defaults instead of raising.
"""
from typing import Optional, Sequence

from propertyhub.core.config import DEFAULT_PLACEHOLDER_IMAGE
from propertyhub.core.locations import LocationTable
from propertyhub.core.models import Listing, ListingStatus, PremiumListing, PropertyMedia, PropertyType, UserProfile
from propertyhub.core.schemas import (
    Agent,
    ListingFormData,
    Property,
    PropertyLocation,
    UserListing,
    UserListingLocation,
    UserListingStatus,
)

STATUS_COLLAPSE = {
    ListingStatus.active.value: UserListingStatus.active,
    ListingStatus.pending.value: UserListingStatus.pending,
    ListingStatus.draft.value: UserListingStatus.pending,
    ListingStatus.rejected.value: UserListingStatus.inactive,
    ListingStatus.rented.value: UserListingStatus.inactive,
    ListingStatus.sold.value: UserListingStatus.inactive,
}


def collapse_status(status) -> UserListingStatus:
    """Map a stored listing status onto the four states shown to owners."""
    key = status.value if isinstance(status, ListingStatus) else status
    return STATUS_COLLAPSE.get(key, UserListingStatus.expired)


def primary_image(media: Sequence[PropertyMedia]) -> str:
    primary = next((m.media_url for m in media if m.is_primary), None)
    if primary:
        return primary
    return media[0].media_url if media else ""


def build_agent(listing: Listing, profile: Optional[UserProfile]) -> Agent:
    if profile is None:
        return Agent(id=listing.user_id)

    return Agent(
        id=profile.id or listing.user_id,
        name=profile.full_name or "Unknown Agent",
        phone=profile.phone or "",
        email=profile.email or "",
        avatar=profile.avatar_url or None,
        company=profile.company or None,
    )


def to_property(
        listing: Listing,
        media: Sequence[PropertyMedia],
        profile: Optional[UserProfile],
        locations: LocationTable,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
) -> Property:
    images = [m.media_url for m in media]

    location = PropertyLocation(
        province=locations.province_name(listing.province_id),
        city=locations.city_name(listing.city_id),
        district=locations.district_name(listing.district_id),
        address=listing.address or "",
        postal_code=listing.postal_code or None,
    )

    return Property(
        id=listing.id,
        title=listing.title,
        description=listing.description or "",
        price=listing.price,
        price_unit=listing.price_unit,
        type=listing.property_type,
        purpose=listing.purpose,
        bedrooms=listing.bedrooms or None,
        bathrooms=listing.bathrooms or None,
        building_size=listing.building_size or None,
        land_size=listing.land_size or None,
        location=location,
        images=images if images else [placeholder_image],
        features=listing.features or [],
        agent=build_agent(listing, profile),
        created_at=listing.created_at,
        is_promoted=bool(listing.is_promoted),
        status=listing.status,
        views=listing.views or 0,
        inquiries=listing.inquiries or 0,
    )


def to_user_listing(
        listing: Listing,
        media: Sequence[PropertyMedia],
        premium: Optional[PremiumListing],
        locations: LocationTable,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
) -> UserListing:
    return UserListing(
        id=listing.id,
        title=listing.title,
        type=PropertyType(listing.property_type).value,
        purpose=listing.purpose,
        price=listing.price,
        price_unit=listing.price_unit,
        status=collapse_status(listing.status),
        is_premium=premium is not None,
        premium_expires_at=premium.end_date if premium is not None else None,
        views=listing.views or 0,
        created_at=listing.created_at,
        image=primary_image(media) or placeholder_image,
        location=UserListingLocation(
            city=locations.city_name(listing.city_id),
            province=locations.province_name(listing.province_id),
        ),
    )


def prepare_listing_data(form: ListingFormData, user_id: str) -> dict:
    """Column values shared by create and update. Status and counters are left to the caller."""
    return {
        "user_id": user_id,
        "title": form.title,
        "description": form.description,
        "price": form.price,
        "price_unit": form.price_unit,
        "property_type": form.property_type,
        "purpose": form.purpose,
        "bedrooms": form.bedrooms or None,
        "bathrooms": form.bathrooms or None,
        "building_size": form.building_size or None,
        "land_size": form.land_size or None,
        "province_id": form.province or None,
        "city_id": form.city or None,
        "district_id": form.district or None,
        "address": form.address or None,
        "features": form.features if form.features else None,
    }
