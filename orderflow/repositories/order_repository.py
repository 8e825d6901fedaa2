"""
Order repository.

Data access layer for Order and OrderLine models.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.models.order import Order, OrderLine
from orderflow.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Order repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize order repository."""
        super().__init__(Order, session)

    async def create_with_lines(
        self, lines: list[dict[str, Any]], **data: Any
    ) -> Order:
        """
        Create an order together with its lines in one flush.

        Args:
            lines: OrderLine column values, one dict per line
            **data: Order column values

        Returns:
            Created order with lines loaded
        """
        order = Order(**data)
        order.lines = [OrderLine(**line) for line in lines]
        self.session.add(order)
        await self.session.flush()
        await self.session.refresh(order, attribute_names=["lines"])
        return order

    async def get_for_user(self, order_id: int, user_id: str) -> Order | None:
        """
        Get order only if it belongs to ``user_id``.

        Args:
            order_id: Order ID
            user_id: Owner subject id

        Returns:
            Order or None
        """
        return await self.get_by(id=order_id, user_id=user_id)

    async def find_user_orders(
        self,
        user_id: str,
        page: int = 1,
        per_page: int = 10,
        status: str | None = None,
    ) -> tuple[list[Order], int]:
        """
        User's orders, newest first, paginated.

        Args:
            user_id: Owner subject id
            page: Page number (1-indexed)
            per_page: Items per page
            status: Optional status filter

        Returns:
            Tuple of (orders, total_count)
        """
        filters: dict[str, Any] = {"user_id": user_id}
        if status:
            filters["status"] = status

        return await self.find_paginated(
            page=page,
            per_page=per_page,
            order_by=Order.id.desc(),
            **filters,
        )

    async def find_orders(
        self,
        page: int = 1,
        per_page: int = 10,
        status: str | None = None,
    ) -> tuple[list[Order], int]:
        """
        All orders, newest first, paginated (admin).

        Args:
            page: Page number (1-indexed)
            per_page: Items per page
            status: Optional status filter

        Returns:
            Tuple of (orders, total_count)
        """
        filters: dict[str, Any] = {}
        if status:
            filters["status"] = status

        return await self.find_paginated(
            page=page,
            per_page=per_page,
            order_by=Order.id.desc(),
            **filters,
        )
