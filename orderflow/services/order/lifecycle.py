"""
Order lifecycle.

Owner cancellation, admin status changes, order reads, tracking and history.
"""

from typing import Any

from orderflow.config.business_constants import (
    ORDER_TRACKING_STEPS,
    OrderStatus,
    PaymentStatus,
)
from orderflow.models.order import Order
from orderflow.services.base_service import transaction
from orderflow.utils.exceptions import (
    InvalidOrderStatus,
    OrderNotCancellable,
    OrderNotFound,
)


def _clamp_page(page: int, limit: int) -> tuple[int, int]:
    return max(int(page), 1), max(int(limit), 1)


def _page_view(
    orders: list[Order], total: int, page: int, limit: int
) -> dict[str, Any]:
    return {
        "orders": orders,
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
    }


class OrderLifecycleMixin:
    """Mixin for post-checkout order handling."""

    @transaction
    async def cancel_order(self, order_id: int, user_id: str) -> Order:
        """
        Cancel an order on behalf of its owner.

        Only pending orders can be cancelled.

        Raises:
            OrderNotFound: No such order for this user
            OrderNotCancellable: Order already moved past pending
        """
        order = await self.order_repo.get_for_user(order_id, user_id)
        if not order:
            raise OrderNotFound()

        if order.status != OrderStatus.PENDING:
            raise OrderNotCancellable()

        order.status = OrderStatus.CANCELLED.value
        await self.session.flush()

        self.logger.info(
            "Order cancelled",
            extra={"order_id": order_id, "user_id": user_id},
        )
        return order

    @transaction
    async def update_order_status(
        self,
        order_id: int,
        status: str | None = None,
        payment_status: str | None = None,
    ) -> Order:
        """
        Admin status update.

        Args:
            order_id: Order ID
            status: New fulfilment status
            payment_status: New payment status

        Raises:
            OrderNotFound: No such order
            InvalidOrderStatus: Value outside the allowed statuses
        """
        if status is not None and status not in {s.value for s in OrderStatus}:
            raise InvalidOrderStatus(f"Invalid status: {status}")
        if payment_status is not None and payment_status not in {
            s.value for s in PaymentStatus
        }:
            raise InvalidOrderStatus(f"Invalid payment status: {payment_status}")

        order = await self.order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound()

        data: dict[str, Any] = {}
        if status:
            data["status"] = status
        if payment_status:
            data["payment_status"] = payment_status

        if data:
            order = await self.order_repo.update(order_id, **data)
            self.logger.info(
                "Order updated",
                extra={"order_id": order_id, **data},
            )
        return order

    async def get_order(self, order_id: int, user_id: str) -> Order:
        """
        Order with its lines, for its owner.

        Raises:
            OrderNotFound: No such order for this user
        """
        order = await self.order_repo.get_for_user(order_id, user_id)
        if not order:
            raise OrderNotFound()
        return order

    async def get_order_admin(self, order_id: int) -> Order:
        """
        Any order with its lines (admin).

        Raises:
            OrderNotFound: No such order
        """
        order = await self.order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound()
        return order

    async def track_order(self, order_id: int, user_id: str) -> dict[str, Any]:
        """
        Tracking view of an order.

        Returns:
            Dict with order_id, current_status, payment_status, step,
            message, order_date, last_update

        Raises:
            OrderNotFound: No such order for this user
        """
        order = await self.get_order(order_id, user_id)

        step, message = ORDER_TRACKING_STEPS[OrderStatus(order.status)]
        return {
            "order_id": order.id,
            "current_status": order.status,
            "payment_status": order.payment_status,
            "step": step,
            "message": message,
            "order_date": order.created_at,
            "last_update": order.updated_at,
        }

    async def list_user_orders(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> dict[str, Any]:
        """
        User's order history.

        A page or limit below 1 is treated as 1.

        Returns:
            Dict with orders, total, page, pages
        """
        page, limit = _clamp_page(page, limit)
        orders, total = await self.order_repo.find_user_orders(
            user_id, page=page, per_page=limit, status=status
        )
        return _page_view(orders, total, page, limit)

    async def list_orders(
        self,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> dict[str, Any]:
        """
        All orders, newest first (admin).

        Returns:
            Dict with orders, total, page, pages
        """
        page, limit = _clamp_page(page, limit)
        orders, total = await self.order_repo.find_orders(
            page=page, per_page=limit, status=status
        )
        return _page_view(orders, total, page, limit)
