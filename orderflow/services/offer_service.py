"""
Offer service.

Administration of discount codes and the public code lookup.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config.business_constants import DiscountType
from orderflow.models.offer import Offer
from orderflow.repositories.offer_repository import OfferRepository
from orderflow.services.base_service import BaseService, log_operation, transaction
from orderflow.utils.datetime_utils import ensure_utc, utc_now
from orderflow.utils.exceptions import (
    InvalidOffer,
    OfferAlreadyExists,
    OfferExpired,
    OfferNotFound,
    OfferNotStarted,
)
from orderflow.utils.money import to_decimal


UPDATABLE_FIELDS = (
    "title",
    "description",
    "discount_type",
    "discount_value",
    "min_order_amount",
    "max_discount_amount",
    "start_date",
    "end_date",
    "is_active",
)

# Fields an update may set back to NULL (open window bound)
CLEARABLE_FIELDS = ("start_date", "end_date")

TRUE_FLAGS = {"true", "1", "yes", "on"}
FALSE_FLAGS = {"false", "0", "no", "off"}


def _parse_amount(field: str, value: Any) -> Decimal:
    if value is None or value == "":
        raise InvalidOffer(f"{field} is required")
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidOffer(f"{field} must be a number") from exc
    if not amount.is_finite():
        raise InvalidOffer(f"{field} must be a number")
    return amount


def _parse_flag(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in TRUE_FLAGS:
        return True
    if normalized in FALSE_FLAGS:
        return False
    raise InvalidOffer(f"{field} must be true or false")


def _validate_terms(
    discount_type: str,
    discount_value: Decimal,
    min_order_amount: Decimal,
    max_discount_amount: Decimal,
    start_date: datetime | None,
    end_date: datetime | None,
) -> None:
    if discount_type not in {t.value for t in DiscountType}:
        raise InvalidOffer(
            f"discountType must be one of: {', '.join(t.value for t in DiscountType)}"
        )
    if discount_value <= 0:
        raise InvalidOffer("discountValue must be greater than 0")
    if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
        raise InvalidOffer("Percentage discount cannot exceed 100")
    if min_order_amount < 0 or max_discount_amount < 0:
        raise InvalidOffer("Amounts cannot be negative")
    if start_date and end_date and ensure_utc(start_date) > ensure_utc(end_date):
        raise InvalidOffer("startDate must be before endDate")


class OfferService(BaseService):
    """Offer administration and lookup."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize offer service."""
        super().__init__(session)
        self.offer_repo = OfferRepository(session)

    @log_operation
    @transaction
    async def create_offer(
        self,
        code: str,
        title: str,
        discount_type: str,
        discount_value: Decimal | int | str,
        description: str = "",
        min_order_amount: Decimal | int | str = 0,
        max_discount_amount: Decimal | int | str = 0,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Offer:
        """
        Create a new offer.

        Args:
            code: Offer code, stored upper-cased
            title: Display title
            discount_type: percentage or flat
            discount_value: Percent or flat amount, > 0
            description: Optional description
            min_order_amount: Minimum subtotal, 0 = none
            max_discount_amount: Cap for percentage offers, 0 = uncapped
            start_date: Optional start of the active window
            end_date: Optional end of the active window

        Returns:
            Created offer

        Raises:
            InvalidOffer: Missing or inconsistent fields
            OfferAlreadyExists: Code taken (case-insensitive)
        """
        if (
            not code
            or not code.strip()
            or not title
            or not discount_type
            or discount_value is None
        ):
            raise InvalidOffer("code, title, discountType, discountValue required")

        code = code.strip().upper()
        discount_value = _parse_amount("discountValue", discount_value)
        min_order_amount = _parse_amount("minOrderAmount", min_order_amount or 0)
        max_discount_amount = _parse_amount(
            "maxDiscountAmount", max_discount_amount or 0
        )

        _validate_terms(
            discount_type,
            discount_value,
            min_order_amount,
            max_discount_amount,
            start_date,
            end_date,
        )

        if await self.offer_repo.get_by_code(code):
            raise OfferAlreadyExists()

        offer = await self.offer_repo.create(
            code=code,
            title=title,
            description=description or "",
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=min_order_amount,
            max_discount_amount=max_discount_amount,
            start_date=start_date,
            end_date=end_date,
        )

        self.logger.info(
            "Offer created",
            extra={
                "code": code,
                "discount_type": discount_type,
                "discount_value": str(discount_value),
            },
        )
        return offer

    @transaction
    async def update_offer(self, offer_id: int, **changes: Any) -> Offer:
        """
        Update an offer. Unknown fields are ignored; the code is immutable.

        None leaves a field unchanged, except start_date and end_date where
        it removes that bound of the window.

        Raises:
            OfferNotFound: No offer with this ID
            InvalidOffer: Resulting terms are inconsistent
        """
        offer = await self.offer_repo.get_by_id(offer_id)
        if not offer:
            raise OfferNotFound()

        data = {
            k: v
            for k, v in changes.items()
            if k in UPDATABLE_FIELDS and (v is not None or k in CLEARABLE_FIELDS)
        }
        for field in ("discount_value", "min_order_amount", "max_discount_amount"):
            if field in data:
                data[field] = _parse_amount(field, data[field])
        if "is_active" in data:
            data["is_active"] = _parse_flag("isActive", data["is_active"])

        _validate_terms(
            data.get("discount_type", offer.discount_type),
            data.get("discount_value", offer.discount_value),
            data.get("min_order_amount", offer.min_order_amount),
            data.get("max_discount_amount", offer.max_discount_amount),
            data.get("start_date", offer.start_date),
            data.get("end_date", offer.end_date),
        )

        updated = await self.offer_repo.update(offer_id, **data)
        self.logger.info(
            "Offer updated",
            extra={"code": offer.code, "fields": sorted(data)},
        )
        return updated

    @transaction
    async def delete_offer(self, offer_id: int) -> None:
        """
        Delete an offer.

        Raises:
            OfferNotFound: No offer with this ID
        """
        offer = await self.offer_repo.get_by_id(offer_id)
        if not offer:
            raise OfferNotFound()

        await self.offer_repo.delete(offer_id)
        self.logger.info("Offer deleted", extra={"code": offer.code})

    async def list_offers(self) -> list[Offer]:
        """All offers, newest first."""
        return await self.offer_repo.list_newest_first()

    async def get_active_offer(
        self, code: str, now: datetime | None = None
    ) -> Offer:
        """
        Public code check.

        Unlike checkout, this tells the customer why a code does not work.

        Args:
            code: Offer code in any case
            now: Evaluation time (defaults to current UTC time)

        Returns:
            The offer

        Raises:
            OfferNotFound: Unknown or switched-off code
            OfferNotStarted: Window has not opened yet
            OfferExpired: Window has closed
        """
        offer = await self.offer_repo.get_active_by_code(code)
        if not offer:
            raise OfferNotFound()

        now = ensure_utc(now or utc_now())
        if offer.start_date and ensure_utc(offer.start_date) > now:
            raise OfferNotStarted()
        if offer.end_date and ensure_utc(offer.end_date) < now:
            raise OfferExpired()

        return offer

    async def find_checkout_offer(self, code: str | None) -> Offer | None:
        """
        Offer for checkout, or None.

        Eligibility (window, minimum amount) is decided by the pricing
        engine, which treats an ineligible offer as no discount.

        Args:
            code: Offer code in any case, or None

        Returns:
            Offer or None
        """
        if not code:
            return None
        return await self.offer_repo.get_by_code(code)
