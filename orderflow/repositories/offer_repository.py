"""
Offer repository.

Data access layer for Offer model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.models.offer import Offer
from orderflow.repositories.base import BaseRepository


class OfferRepository(BaseRepository[Offer]):
    """Offer repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize offer repository."""
        super().__init__(Offer, session)

    async def get_by_code(self, code: str) -> Offer | None:
        """
        Get offer by code (case-insensitive).

        Codes are stored upper-cased, so the lookup upper-cases too.

        Args:
            code: Offer code in any case

        Returns:
            Offer or None
        """
        if not code:
            return None
        return await self.get_by(code=code.strip().upper())

    async def get_active_by_code(self, code: str) -> Offer | None:
        """
        Get offer by code if its admin switch is on.

        The date window is not checked here.

        Args:
            code: Offer code in any case

        Returns:
            Active offer or None
        """
        if not code:
            return None
        return await self.get_by(code=code.strip().upper(), is_active=True)

    async def list_newest_first(self) -> list[Offer]:
        """All offers, newest first."""
        return await self.find_all(order_by=Offer.created_at.desc())
