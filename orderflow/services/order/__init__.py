"""
Order service module.

Structure:
- placement.py: checkout (price capture, pricing, order creation)
- lifecycle.py: cancellation, admin status updates, tracking, history

Usage:
    from orderflow.services.order import OrderService

    order_service = OrderService(session)
    order = await order_service.place_order(user_id, items, address, offer_code="SAVE10")
    await order_service.cancel_order(order.id, user_id)
"""

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.repositories.order_repository import OrderRepository
from orderflow.repositories.product_repository import ProductRepository
from orderflow.services.base_service import BaseService
from orderflow.services.offer_service import OfferService
from orderflow.services.order.lifecycle import OrderLifecycleMixin
from orderflow.services.order.placement import OrderPlacementMixin


class OrderService(OrderPlacementMixin, OrderLifecycleMixin, BaseService):
    """
    Combined order service.

    Inherits from all order service mixins to provide complete functionality.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize order service.

        Args:
            session: Database session
        """
        BaseService.__init__(self, session)
        self.order_repo = OrderRepository(session)
        self.product_repo = ProductRepository(session)
        self.offer_service = OfferService(session)


__all__ = ["OrderService"]
