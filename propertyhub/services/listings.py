import asyncio
from datetime import datetime
from logging import Logger
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import Select, case, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.core.config import AppConfig, config
from propertyhub.core.database import DatabaseClient
from propertyhub.core.locations import LocationTable, locations as default_locations
from propertyhub.core.logger import AppLogger
from propertyhub.core.models import (
    Listing,
    ListingStatus,
    PremiumListing,
    PriceUnit,
    PropertyMedia,
    PropertyType,
    Purpose,
    UserProfile,
    new_id,
)
from propertyhub.core.result import FailureReason, Result
from propertyhub.core.schemas import (
    ListingFilters,
    ListingFormData,
    ListingPage,
    Property,
    SortOption,
    UserListing,
)
from propertyhub.core.storage import ObjectStorageClient, StorageError, decode_data_url, is_data_url, object_name
from propertyhub.services.transform import prepare_listing_data, to_property, to_user_listing

# Price on the juta scale, so 2 miliar sorts after 750 juta
NORMALISED_PRICE = case((Listing.price_unit == PriceUnit.miliar, Listing.price * 1000), else_=Listing.price)

SORT_ORDERS = {
    SortOption.newest: (Listing.created_at.desc(),),
    SortOption.oldest: (Listing.created_at.asc(),),
    SortOption.price_asc: (NORMALISED_PRICE.asc(),),
    SortOption.price_desc: (NORMALISED_PRICE.desc(),),
    SortOption.views: (Listing.views.desc(),),
    SortOption.premium: (Listing.is_promoted.desc(), Listing.created_at.desc()),
}


def _selected(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def listing_conditions(filters: Optional[ListingFilters], require_media: bool = True) -> list:
    """WHERE clauses for a filter set: equality first, then ranges.

    Raises ValueError when a filter names an unknown status, type or purpose.
    """
    conditions = []

    if filters is not None:
        if _selected(filters.status):
            conditions.append(Listing.status == ListingStatus(filters.status))
        if _selected(filters.type):
            conditions.append(Listing.property_type == PropertyType(filters.type))
        if _selected(filters.purpose):
            conditions.append(Listing.purpose == Purpose(filters.purpose))

        location = filters.location
        if location.province:
            conditions.append(Listing.province_id == location.province)
        if location.city:
            conditions.append(Listing.city_id == location.city)
        if location.district:
            conditions.append(Listing.district_id == location.district)

        if filters.price_range:
            low, high = filters.price_range
            if low is not None:
                conditions.append(Listing.price >= low)
            if high is not None:
                conditions.append(Listing.price <= high)
        if filters.bedrooms:
            conditions.append(Listing.bedrooms >= filters.bedrooms)
        if filters.bathrooms:
            conditions.append(Listing.bathrooms >= filters.bathrooms)

    # Listings without any media are hidden from the browser
    if require_media:
        conditions.append(Listing.media.any())

    return conditions


def build_listing_query(
        filters: Optional[ListingFilters],
        page: int = 1,
        page_size: int = 10,
        require_media: bool = True,
) -> tuple[Select, Select]:
    """Return the windowed row query and the matching exact-count query."""
    if page < 1 or page_size < 1:
        raise ValueError(f"Invalid page window: page={page}, page_size={page_size}")

    conditions = listing_conditions(filters, require_media)
    sort_by = filters.sort_by if filters is not None else SortOption.newest

    query = (
        select(Listing)
        .options(selectinload(Listing.media))
        .where(*conditions)
        .order_by(*SORT_ORDERS[sort_by])
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    count_query = select(func.count(Listing.id)).where(*conditions)

    return query, count_query


class ListingService:
    def __init__(
            self,
            db_client: DatabaseClient,
            storage: Optional[ObjectStorageClient] = None,
            locations: Optional[LocationTable] = None,
            logger: Optional[Logger] = None,
            settings: Optional[AppConfig] = None,
    ):
        self.db_client = db_client
        self.storage = storage
        self.locations = locations or default_locations
        self.logger = logger or AppLogger(name="listings").get_logger()
        self.settings = settings or config.app

    # ----------------------- Reads -----------------------
    async def list_all(
            self,
            filters: Optional[ListingFilters] = None,
            page: int = 1,
            page_size: Optional[int] = None,
            require_media: bool = True,
    ) -> Result[ListingPage]:
        if page_size is None:
            page_size = self.settings.default_page_size

        try:
            query, count_query = build_listing_query(filters, page, page_size, require_media)
        except ValueError as e:
            self.logger.warning(f"Rejected listing filters: {e}")
            return Result.failure(FailureReason.validation_failed, str(e))

        try:
            async with self.db_client.session() as session:
                total = (await session.execute(count_query)).scalar_one()
                listings = (await session.execute(query)).scalars().all()
                profiles = await self._profiles(session, {listing.user_id for listing in listings})
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching listings: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        items = [
            to_property(listing, listing.media, profiles.get(listing.user_id), self.locations, self.settings.placeholder_image)
            for listing in listings
        ]
        self.logger.debug(f"Fetched {len(items)} of {total} listings (page {page})")

        return Result.success(ListingPage(items=items, total_count=total or 0))

    async def get_by_id(self, listing_id: str) -> Result[Property]:
        try:
            async with self.db_client.session() as session:
                listing = (
                    await session.execute(select(Listing).where(Listing.id == listing_id))
                ).scalar_one_or_none()

                if listing is None:
                    return Result.failure(FailureReason.not_found, f"Listing {listing_id} not found")

                media = (
                    await session.execute(
                        select(PropertyMedia)
                        .where(PropertyMedia.listing_id == listing_id)
                        .order_by(PropertyMedia.is_primary.desc())
                    )
                ).scalars().all()
                profile = await session.get(UserProfile, listing.user_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching listing {listing_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        return Result.success(to_property(listing, media, profile, self.locations, self.settings.placeholder_image))

    async def list_for_user(self, user_id: str) -> Result[list[UserListing]]:
        try:
            async with self.db_client.session() as session:
                listings = (
                    await session.execute(
                        select(Listing)
                        .options(selectinload(Listing.media))
                        .where(Listing.user_id == user_id)
                        .order_by(Listing.created_at.desc())
                    )
                ).scalars().all()

            premiums = await asyncio.gather(*(self._active_premium(listing.id) for listing in listings))
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching listings of user {user_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        return Result.success([
            to_user_listing(listing, listing.media, premium, self.locations, self.settings.placeholder_image)
            for listing, premium in zip(listings, premiums)
        ])

    # ----------------------- Writes -----------------------
    async def create(self, form_data: ListingFormData | dict[str, Any], user_id: str) -> Result[str]:
        form = self._validate_form(form_data, user_id)
        if isinstance(form, Result):
            return form

        listing_id = new_id()
        media_urls = await self._store_images(listing_id, form.images)

        try:
            async with self.db_client.transaction() as session:
                session.add(
                    Listing(
                        id=listing_id,
                        **prepare_listing_data(form, user_id),
                        status=ListingStatus.pending,
                        views=0,
                        inquiries=0,
                        is_promoted=False,
                    )
                )
                session.add_all(self._media_rows(listing_id, media_urls))
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating listing for user {user_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        self.logger.info(f"Created listing {listing_id} for user {user_id} with {len(media_urls)} media")
        return Result.success(listing_id)

    async def update(self, listing_id: str, form_data: ListingFormData | dict[str, Any], user_id: str) -> Result[bool]:
        """Overwrite a listing and replace all of its media.

        Edited listings go back to moderation, counters and promotion are kept.
        """
        form = self._validate_form(form_data, user_id)
        if isinstance(form, Result):
            return form

        try:
            async with self.db_client.session() as session:
                owned = await session.scalar(
                    select(Listing.id).where(Listing.id == listing_id, Listing.user_id == user_id)
                )
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating listing {listing_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        if owned is None:
            return Result.failure(FailureReason.not_found, f"Listing {listing_id} not found for user {user_id}")

        # Nothing is uploaded under a listing the caller does not own
        media_urls = await self._store_images(listing_id, form.images)

        try:
            async with self.db_client.transaction() as session:
                listing = (
                    await session.execute(
                        select(Listing).where(Listing.id == listing_id, Listing.user_id == user_id)
                    )
                ).scalar_one_or_none()

                if listing is None:
                    return Result.failure(FailureReason.not_found, f"Listing {listing_id} not found for user {user_id}")

                for key, value in prepare_listing_data(form, user_id).items():
                    setattr(listing, key, value)
                listing.status = ListingStatus.pending
                listing.updated_at = datetime.now()

                await session.execute(delete(PropertyMedia).where(PropertyMedia.listing_id == listing_id))
                session.add_all(self._media_rows(listing_id, media_urls))
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating listing {listing_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        self.logger.info(f"Updated listing {listing_id}, media replaced with {len(media_urls)} items")
        return Result.success(True)

    async def set_status(self, listing_id: str, status: ListingStatus | str) -> Result[bool]:
        try:
            new_status = ListingStatus(status)
        except ValueError as e:
            self.logger.warning(f"Rejected status for listing {listing_id}: {e}")
            return Result.failure(FailureReason.validation_failed, str(e))

        try:
            async with self.db_client.transaction() as session:
                result = await session.execute(
                    update(Listing)
                    .where(Listing.id == listing_id)
                    .values(status=new_status, updated_at=datetime.now())
                )
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating status of listing {listing_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        if result.rowcount == 0:
            return Result.failure(FailureReason.not_found, f"Listing {listing_id} not found")

        self.logger.info(f"Listing {listing_id} status set to {new_status.value}")
        return Result.success(True)

    async def delete(self, listing_id: str, user_id: str) -> Result[bool]:
        try:
            async with self.db_client.transaction() as session:
                owned = await session.scalar(
                    select(Listing.id).where(Listing.id == listing_id, Listing.user_id == user_id)
                )
                if owned is None:
                    return Result.failure(FailureReason.not_found, f"Listing {listing_id} not found for user {user_id}")

                # Media holds the foreign key, so it goes first
                await session.execute(delete(PropertyMedia).where(PropertyMedia.listing_id == listing_id))
                await session.execute(delete(Listing).where(Listing.id == listing_id))
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting listing {listing_id}: {e}", exc_info=True)
            return Result.failure(FailureReason.backend_unavailable, str(e))

        self.logger.info(f"Deleted listing {listing_id}")
        return Result.success(True)

    async def increment_views(self, listing_id: str) -> None:
        await self._increment(listing_id, "views")

    async def increment_inquiries(self, listing_id: str) -> None:
        await self._increment(listing_id, "inquiries")

    # ----------------------- Helpers -----------------------
    async def _increment(self, listing_id: str, counter: str):
        column = getattr(Listing, counter)
        try:
            async with self.db_client.transaction() as session:
                await session.execute(
                    update(Listing).where(Listing.id == listing_id).values({counter: column + 1})
                )
        except SQLAlchemyError as e:
            self.logger.error(f"Error incrementing {counter} of listing {listing_id}: {e}")

    async def _profiles(self, session: AsyncSession, user_ids: set[str]) -> dict[str, UserProfile]:
        if not user_ids:
            return {}
        rows = await session.execute(select(UserProfile).where(UserProfile.id.in_(user_ids)))
        return {profile.id: profile for profile in rows.scalars()}

    async def _active_premium(self, listing_id: str) -> Optional[PremiumListing]:
        async with self.db_client.session() as session:
            result = await session.execute(
                select(PremiumListing)
                .where(
                    PremiumListing.property_id == listing_id,
                    PremiumListing.status == "active",
                    PremiumListing.end_date > datetime.now(),
                )
                .order_by(PremiumListing.end_date.desc())
                .limit(1)
            )
            return result.scalars().first()

    def _validate_form(self, form_data, user_id: str) -> ListingFormData | Result:
        if not user_id:
            return Result.failure(FailureReason.validation_failed, "user_id is required")
        try:
            return ListingFormData.model_validate(form_data)
        except ValidationError as e:
            self.logger.warning(f"Rejected listing form from user {user_id}: {e.error_count()} errors")
            return Result.failure(FailureReason.validation_failed, str(e))

    async def _store_images(self, listing_id: str, images: list[str]) -> list[str]:
        return list(await asyncio.gather(
            *(self._store_image(listing_id, index, image) for index, image in enumerate(images))
        ))

    async def _store_image(self, listing_id: str, index: int, image: str) -> str:
        """Upload inline images and return their public URL. Plain URLs pass through."""
        if not is_data_url(image):
            return image

        if self.storage is None:
            self.logger.warning(f"No object storage configured, keeping inline image {index} of listing {listing_id}")
            return image

        try:
            data, content_type = decode_data_url(image)
            path = await asyncio.to_thread(
                self.storage.upload, object_name(listing_id, index, content_type), data, content_type
            )
            return self.storage.get_public_url(path)
        except (StorageError, ValueError) as e:
            # Keep the original so the listing still has the image
            self.logger.error(f"Error uploading image {index} of listing {listing_id}: {e}")
            return image

    @staticmethod
    def _media_rows(listing_id: str, media_urls: list[str]) -> list[PropertyMedia]:
        return [
            PropertyMedia(
                listing_id=listing_id,
                media_url=url,
                media_type="image",
                is_primary=index == 0,
            )
            for index, url in enumerate(media_urls)
        ]
