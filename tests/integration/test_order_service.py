"""
Integration tests for OrderService.

Tests cover:
- Checkout pricing with captured product prices
- Offer application at checkout
- Line validation (missing/inactive products, add-ons)
- Cancellation, admin status updates, tracking and history
- Owner and admin order reads
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from orderflow.services.offer_service import OfferService
from orderflow.services.order import OrderService
from orderflow.utils.exceptions import (
    InvalidOrderLine,
    InvalidOrderStatus,
    OrderNotCancellable,
    OrderNotFound,
)


ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "line1": "12 MG Road",
    "city": "Bengaluru",
    "pincode": "560001",
}


@pytest.fixture
def order_service(session):
    return OrderService(session)


@pytest.fixture
def offer_service(session):
    return OfferService(session)


@pytest.fixture
async def catalog(make_product):
    """Two products: 500 at 20% off (400) and 300 without discount."""
    tee = await make_product(
        name="Graphic Tee",
        selling_price=Decimal("500"),
        discount_percent=Decimal("20"),
        add_ons=[{"name": "Gift Wrap", "price": "49"}],
    )
    mug = await make_product(name="Coffee Mug", selling_price=Decimal("300"))
    return {"tee": tee.id, "mug": mug.id}


class TestPlaceOrder:
    """Test checkout."""

    @pytest.mark.asyncio
    async def test_flat_offer_checkout(
        self, order_service, offer_service, catalog, fixed_now
    ):
        await offer_service.create_offer(
            code="flat150",
            title="Flat 150 off",
            discount_type="flat",
            discount_value=150,
            min_order_amount=500,
        )

        order = await order_service.place_order(
            "user-1",
            [
                {"product_id": catalog["tee"], "quantity": 1},
                {"product_id": catalog["mug"], "quantity": 2},
            ],
            ADDRESS,
            offer_code="flat150",
            now=fixed_now,
        )

        assert order.subtotal == Decimal("1000")
        assert order.discount == Decimal("150")
        assert order.total == Decimal("850")
        assert order.offer_code == "FLAT150"
        assert order.status == "pending"
        assert order.payment_status == "pending"
        assert order.payment_method == "COD"
        assert order.shipping_address["city"] == "Bengaluru"
        assert [line.product_price for line in order.lines] == [
            Decimal("400"),
            Decimal("300"),
        ]

    @pytest.mark.asyncio
    async def test_line_prices_are_captured(
        self, order_service, session, catalog, fixed_now
    ):
        """Later catalog price changes do not touch placed orders."""
        order = await order_service.place_order(
            "user-1", [{"product_id": catalog["tee"]}], ADDRESS, now=fixed_now
        )
        order_id = order.id

        product = await order_service.product_repo.get_by_id(catalog["tee"])
        product.selling_price = Decimal("1000")
        await session.commit()
        await session.refresh(product)
        assert product.final_price == Decimal("800")

        reloaded = await order_service.order_repo.get_for_user(order_id, "user-1")
        assert reloaded.lines[0].product_price == Decimal("400")
        assert reloaded.total == Decimal("400")

    @pytest.mark.asyncio
    async def test_add_on_price_added(self, order_service, catalog, fixed_now):
        order = await order_service.place_order(
            "user-1",
            [{"product_id": catalog["tee"], "quantity": 2, "add_on_name": "Gift Wrap"}],
            ADDRESS,
            now=fixed_now,
        )

        assert order.subtotal == Decimal("898")
        assert order.lines[0].add_on_name == "Gift Wrap"
        assert order.lines[0].add_on_price == Decimal("49")
        assert order.lines[0].line_total == Decimal("898")

    @pytest.mark.asyncio
    async def test_expired_offer_ignored(
        self, order_service, offer_service, catalog, fixed_now
    ):
        await offer_service.create_offer(
            code="OLD20",
            title="Old sale",
            discount_type="percentage",
            discount_value=20,
            start_date=fixed_now - timedelta(days=30),
            end_date=fixed_now - timedelta(days=1),
        )

        order = await order_service.place_order(
            "user-1",
            [{"product_id": catalog["mug"]}],
            ADDRESS,
            offer_code="old20",
            now=fixed_now,
        )

        assert order.discount == Decimal("0")
        assert order.total == order.subtotal == Decimal("300")
        assert order.offer_code is None

    @pytest.mark.asyncio
    async def test_unknown_offer_ignored(self, order_service, catalog, fixed_now):
        order = await order_service.place_order(
            "user-1",
            [{"product_id": catalog["mug"]}],
            ADDRESS,
            offer_code="NOPE",
            now=fixed_now,
        )

        assert order.total == Decimal("300")
        assert order.offer_code is None

    @pytest.mark.asyncio
    async def test_missing_product(self, order_service, catalog):
        with pytest.raises(InvalidOrderLine, match="Invalid productId: 999"):
            await order_service.place_order(
                "user-1", [{"product_id": 999}], ADDRESS
            )

    @pytest.mark.asyncio
    async def test_inactive_product(self, order_service, make_product):
        product = await make_product(name="Retired Hoodie", is_active=False)

        with pytest.raises(InvalidOrderLine, match="Retired Hoodie is not available"):
            await order_service.place_order(
                "user-1", [{"product_id": product.id}], ADDRESS
            )

    @pytest.mark.asyncio
    async def test_unknown_add_on(self, order_service, catalog):
        with pytest.raises(InvalidOrderLine, match="Unknown add-on"):
            await order_service.place_order(
                "user-1",
                [{"product_id": catalog["mug"], "add_on_name": "Engraving"}],
                ADDRESS,
            )

    @pytest.mark.asyncio
    async def test_zero_quantity(self, order_service, catalog):
        with pytest.raises(InvalidOrderLine):
            await order_service.place_order(
                "user-1", [{"product_id": catalog["mug"], "quantity": 0}], ADDRESS
            )

    @pytest.mark.asyncio
    async def test_empty_cart(self, order_service):
        with pytest.raises(InvalidOrderLine):
            await order_service.place_order("user-1", [], ADDRESS)

    @pytest.mark.asyncio
    async def test_invalid_address(self, order_service, catalog):
        with pytest.raises(InvalidOrderLine, match="shippingAddress is invalid"):
            await order_service.place_order(
                "user-1", [{"product_id": catalog["mug"]}], {"name": "Asha"}
            )

    @pytest.mark.asyncio
    async def test_failed_checkout_writes_nothing(self, order_service, catalog):
        with pytest.raises(InvalidOrderLine):
            await order_service.place_order(
                "user-1",
                [{"product_id": catalog["mug"]}, {"product_id": 999}],
                ADDRESS,
            )

        result = await order_service.list_user_orders("user-1")
        assert result["total"] == 0


class TestOrderLifecycle:
    """Test cancellation, status updates and tracking."""

    @pytest.fixture
    async def order_id(self, order_service, catalog, fixed_now):
        order = await order_service.place_order(
            "user-1", [{"product_id": catalog["mug"]}], ADDRESS, now=fixed_now
        )
        return order.id

    @pytest.mark.asyncio
    async def test_cancel_pending_order(self, order_service, order_id):
        order = await order_service.cancel_order(order_id, "user-1")

        assert order.status == "cancelled"

    @pytest.mark.asyncio
    async def test_cancel_twice(self, order_service, order_id):
        await order_service.cancel_order(order_id, "user-1")

        with pytest.raises(OrderNotCancellable):
            await order_service.cancel_order(order_id, "user-1")

    @pytest.mark.asyncio
    async def test_cancel_other_users_order(self, order_service, order_id):
        with pytest.raises(OrderNotFound):
            await order_service.cancel_order(order_id, "user-2")

    @pytest.mark.asyncio
    async def test_shipped_order_not_cancellable(self, order_service, order_id):
        await order_service.update_order_status(order_id, status="shipped")

        with pytest.raises(OrderNotCancellable):
            await order_service.cancel_order(order_id, "user-1")

    @pytest.mark.asyncio
    async def test_update_status_and_payment(self, order_service, order_id):
        order = await order_service.update_order_status(
            order_id, status="confirmed", payment_status="paid"
        )

        assert order.status == "confirmed"
        assert order.payment_status == "paid"

    @pytest.mark.asyncio
    async def test_invalid_status(self, order_service, order_id):
        with pytest.raises(InvalidOrderStatus):
            await order_service.update_order_status(order_id, status="lost")

        with pytest.raises(InvalidOrderStatus):
            await order_service.update_order_status(order_id, payment_status="maybe")

    @pytest.mark.asyncio
    async def test_update_missing_order(self, order_service):
        with pytest.raises(OrderNotFound):
            await order_service.update_order_status(12345, status="shipped")

    @pytest.mark.asyncio
    async def test_track_order(self, order_service, order_id):
        tracking = await order_service.track_order(order_id, "user-1")
        assert (tracking["current_status"], tracking["step"]) == ("pending", 1)
        assert tracking["message"] == "Order placed successfully"

        await order_service.update_order_status(order_id, status="shipped")
        tracking = await order_service.track_order(order_id, "user-1")
        assert (tracking["current_status"], tracking["step"]) == ("shipped", 3)

        await order_service.update_order_status(order_id, status="delivered")
        tracking = await order_service.track_order(order_id, "user-1")
        assert tracking["step"] == 4

    @pytest.mark.asyncio
    async def test_track_cancelled_order(self, order_service, order_id):
        await order_service.cancel_order(order_id, "user-1")

        tracking = await order_service.track_order(order_id, "user-1")
        assert tracking["step"] == 0

    @pytest.mark.asyncio
    async def test_list_user_orders(self, order_service, catalog, fixed_now):
        ids = []
        for _ in range(3):
            order = await order_service.place_order(
                "user-1", [{"product_id": catalog["mug"]}], ADDRESS, now=fixed_now
            )
            ids.append(order.id)
        await order_service.place_order(
            "user-2", [{"product_id": catalog["mug"]}], ADDRESS, now=fixed_now
        )
        await order_service.cancel_order(ids[0], "user-1")

        first_page = await order_service.list_user_orders("user-1", page=1, limit=2)
        assert first_page["total"] == 3
        assert first_page["pages"] == 2
        assert [o.id for o in first_page["orders"]] == [ids[2], ids[1]]

        cancelled = await order_service.list_user_orders("user-1", status="cancelled")
        assert [o.id for o in cancelled["orders"]] == [ids[0]]

    @pytest.mark.asyncio
    async def test_list_user_orders_clamps_paging(self, order_service, order_id):
        history = await order_service.list_user_orders("user-1", page=0, limit=0)

        assert (history["total"], history["page"], history["pages"]) == (1, 1, 1)
        assert [o.id for o in history["orders"]] == [order_id]


class TestOrderReads:
    """Test single-order reads and the admin order list."""

    @pytest.fixture
    async def order_ids(self, order_service, catalog, fixed_now):
        ids = []
        for user_id in ("user-1", "user-2", "user-1"):
            order = await order_service.place_order(
                user_id, [{"product_id": catalog["mug"]}], ADDRESS, now=fixed_now
            )
            ids.append(order.id)
        return ids

    @pytest.mark.asyncio
    async def test_get_own_order(self, order_service, order_ids, catalog):
        order = await order_service.get_order(order_ids[0], "user-1")

        assert order.user_id == "user-1"
        assert [line.product_id for line in order.lines] == [catalog["mug"]]

    @pytest.mark.asyncio
    async def test_get_other_users_order(self, order_service, order_ids):
        with pytest.raises(OrderNotFound):
            await order_service.get_order(order_ids[1], "user-1")

    @pytest.mark.asyncio
    async def test_get_order_admin(self, order_service, order_ids):
        order = await order_service.get_order_admin(order_ids[1])

        assert order.user_id == "user-2"
        assert len(order.lines) == 1

        with pytest.raises(OrderNotFound):
            await order_service.get_order_admin(12345)

    @pytest.mark.asyncio
    async def test_list_orders_spans_users(self, order_service, order_ids):
        await order_service.update_order_status(order_ids[1], status="shipped")

        first_page = await order_service.list_orders(page=1, limit=2)
        assert first_page["total"] == 3
        assert first_page["pages"] == 2
        assert [o.id for o in first_page["orders"]] == [order_ids[2], order_ids[1]]

        shipped = await order_service.list_orders(status="shipped")
        assert [o.id for o in shipped["orders"]] == [order_ids[1]]

        clamped = await order_service.list_orders(page=-3, limit=0)
        assert (clamped["page"], clamped["pages"]) == (1, 3)
