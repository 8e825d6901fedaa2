"""
Product repository.

Data access layer for Product model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.models.product import Product
from orderflow.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Product repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize product repository."""
        super().__init__(Product, session)

    async def get_by_ids(self, product_ids: list[int]) -> dict[int, Product]:
        """
        Load several products in one query.

        Args:
            product_ids: Product IDs (duplicates allowed)

        Returns:
            Dict mapping product ID to product, missing IDs are absent
        """
        if not product_ids:
            return {}

        stmt = select(Product).where(Product.id.in_(set(product_ids)))
        result = await self.session.execute(stmt)
        return {product.id: product for product in result.scalars().all()}
