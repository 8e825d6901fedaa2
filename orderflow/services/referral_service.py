"""
Referral service.

Entry point for the referral program: registering new joiners under a
referral code and reading account dashboards.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.models.referral import ReferralAccount
from orderflow.services.referral import ReferralCascade, ReferralQueryManager


class ReferralService:
    """
    Referral service for registrations and referral queries.

    Works on a session factory rather than a single session: the cascade
    commits each ancestor's credit in its own short transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize referral service."""
        self.session_factory = session_factory
        self.cascade = ReferralCascade(session_factory)
        self.queries = ReferralQueryManager(session_factory)
        self.logger = logger.bind(service=self.__class__.__name__)

    async def register_referral(
        self,
        new_user_id: str,
        referrer_user_id: str,
        now: datetime | None = None,
    ) -> str:
        """
        Register a new joiner under an existing referrer.

        Returns:
            Referral code of the new account
        """
        return await self.cascade.register_referral(
            new_user_id, referrer_user_id, now=now
        )

    async def register_with_code(
        self,
        new_user_id: str,
        referral_code: str,
        now: datetime | None = None,
    ) -> str:
        """
        Register a new joiner using the referral code they presented.

        Args:
            new_user_id: Newly created user
            referral_code: Code as typed (case-insensitive)
            now: Join time

        Returns:
            Referral code of the new account

        Raises:
            InvalidReferralCode: Code does not resolve to an account
        """
        referrer = await self.queries.verify_code(referral_code.strip().upper())

        self.logger.info(
            "Registering referral by code",
            extra={
                "new_user_id": new_user_id,
                "referrer_user_id": referrer.user_id,
            },
        )
        return await self.register_referral(new_user_id, referrer.user_id, now=now)

    async def get_or_create_account(self, user_id: str) -> ReferralAccount:
        """Get a user's referral account, creating a root account if missing."""
        return await self.queries.get_or_create_account(user_id)

    async def verify_code(self, referral_code: str) -> ReferralAccount:
        """Resolve a referral code to its account."""
        return await self.queries.verify_code(referral_code)

    async def get_dashboard(self, user_id: str) -> dict[str, Any]:
        """Dashboard of a user's referral account, created on first access."""
        return await self.queries.get_dashboard(user_id)

    async def get_referrals(self, user_id: str) -> dict[str, Any]:
        """Downline list of a user."""
        return await self.queries.get_referrals(user_id)

    async def get_transactions(
        self, user_id: str, type: str | None = None, limit: int = 50
    ) -> dict[str, Any]:
        """Ledger history of a user, newest first."""
        return await self.queries.get_transactions(user_id, type=type, limit=limit)

    async def get_stats(self) -> dict[str, int | Decimal]:
        """Program-wide statistics (admin)."""
        return await self.queries.get_stats()
