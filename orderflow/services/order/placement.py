"""
Order placement.

Resolves cart items to current product prices, prices the checkout and
writes the order with its lines in one transaction.
"""

from datetime import datetime
from typing import Any

from orderflow.config.settings import settings
from orderflow.models.order import Order
from orderflow.models.product import Product
from orderflow.services.base_service import log_operation, transaction
from orderflow.services.pricing import PricingLine, compute_order_total
from orderflow.utils.exceptions import InvalidOrderLine


REQUIRED_ADDRESS_FIELDS = ("name", "phone")


class OrderPlacementMixin:
    """
    Mixin for checkout.

    Expects ``order_repo``, ``product_repo`` and ``offer_service`` on the
    combined service.
    """

    async def _resolve_lines(
        self, items: list[dict[str, Any]]
    ) -> tuple[list[PricingLine], list[dict[str, Any]]]:
        """
        Capture current prices for cart items.

        Returns:
            Tuple of (pricing lines, order line column values)

        Raises:
            InvalidOrderLine: Missing/inactive product, unknown add-on,
                bad quantity
        """
        try:
            product_ids = [int(item["product_id"]) for item in items]
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidOrderLine("Every item needs a valid product_id") from exc

        products = await self.product_repo.get_by_ids(product_ids)

        pricing_lines: list[PricingLine] = []
        order_lines: list[dict[str, Any]] = []

        for product_id, item in zip(product_ids, items):
            product: Product | None = products.get(product_id)
            if product is None:
                raise InvalidOrderLine(f"Invalid productId: {product_id}")
            if not product.is_active:
                raise InvalidOrderLine(f"Product {product.name} is not available")

            try:
                quantity = int(item.get("quantity", 1))
            except (TypeError, ValueError) as exc:
                raise InvalidOrderLine(
                    f"Invalid quantity for product {product.name}"
                ) from exc

            add_on_name = item.get("add_on_name")
            add_on_price = product.get_add_on_price(add_on_name)
            if add_on_price is None:
                raise InvalidOrderLine(
                    f"Unknown add-on {add_on_name!r} for product {product.name}"
                )

            pricing_lines.append(
                PricingLine(
                    product_id=product.id,
                    unit_price=product.final_price,
                    quantity=quantity,
                    add_on_price=add_on_price,
                    is_available=product.is_active,
                )
            )
            order_lines.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_price": product.final_price,
                    "add_on_name": add_on_name,
                    "add_on_price": add_on_price,
                    "quantity": quantity,
                    "size": item.get("size"),
                    "color": item.get("color"),
                }
            )

        return pricing_lines, order_lines

    @log_operation
    @transaction
    async def place_order(
        self,
        user_id: str,
        items: list[dict[str, Any]],
        shipping_address: dict[str, Any],
        offer_code: str | None = None,
        payment_method: str | None = None,
        notes: str = "",
        now: datetime | None = None,
    ) -> Order:
        """
        Place an order.

        Each item is a dict with ``product_id``, ``quantity`` (default 1)
        and optional ``add_on_name``, ``size``, ``color``. An unknown or
        ineligible offer code places the order without discount.

        Args:
            user_id: Purchasing account (opaque subject id)
            items: Cart items
            shipping_address: Address snapshot, needs name and phone
            offer_code: Optional discount code
            payment_method: Defaults to settings.order_default_payment_method
            notes: Customer notes
            now: Evaluation time for the offer window

        Returns:
            Created order with lines

        Raises:
            InvalidOrderLine: Empty cart, invalid address or item
        """
        if not items:
            raise InvalidOrderLine("Order must contain at least one line")
        if not shipping_address or any(
            not shipping_address.get(field) for field in REQUIRED_ADDRESS_FIELDS
        ):
            raise InvalidOrderLine("shippingAddress is invalid")

        pricing_lines, order_lines = await self._resolve_lines(items)

        offer = await self.offer_service.find_checkout_offer(offer_code)
        pricing = compute_order_total(pricing_lines, offer, now)

        order = await self.order_repo.create_with_lines(
            order_lines,
            user_id=user_id,
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            total=pricing.total,
            offer_code=pricing.offer_code,
            payment_method=payment_method or settings.order_default_payment_method,
            shipping_address=dict(shipping_address),
            notes=notes or "",
        )

        self.logger.info(
            "Order placed",
            extra={
                "order_id": order.id,
                "user_id": user_id,
                "lines": len(order_lines),
                "subtotal": str(pricing.subtotal),
                "discount": str(pricing.discount),
                "total": str(pricing.total),
                "offer_code": pricing.offer_code,
            },
        )

        return order
