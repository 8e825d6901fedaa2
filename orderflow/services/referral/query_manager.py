"""
Referral queries.

Dashboards, downline lists, ledger history and program statistics.
"""

from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.config.business_constants import DASHBOARD_RECENT_TRANSACTIONS
from orderflow.models.referral import CommissionTransaction, ReferralAccount
from orderflow.repositories.referral_repository import (
    CommissionTransactionRepository,
    ReferralAccountRepository,
    ReferralDownlineRepository,
)
from orderflow.services.referral.code_generator import (
    generate_unique_referral_code,
)
from orderflow.utils.exceptions import (
    InvalidReferralCode,
    ReferralAccountNotFound,
)


def _transaction_view(tx: CommissionTransaction) -> dict[str, Any]:
    return {
        "id": tx.id,
        "type": tx.type,
        "amount": tx.amount,
        "description": tx.description,
        "date": tx.transaction_date,
        "status": tx.status,
        "level": tx.level,
        "related_user_id": tx.related_user_id,
    }


class ReferralQueryManager:
    """Read side of the referral program."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize query manager."""
        self.session_factory = session_factory

    async def get_or_create_account(self, user_id: str) -> ReferralAccount:
        """
        Get a user's account, creating a root account if missing.

        Args:
            user_id: Owner subject id

        Returns:
            ReferralAccount
        """
        async with self.session_factory() as session:
            accounts = ReferralAccountRepository(session)
            account = await accounts.get_by_user_id(user_id)
            if account:
                return account

            code = await generate_unique_referral_code(accounts)
            try:
                account = await accounts.create(user_id=user_id, referral_code=code)
                await session.commit()
            except IntegrityError:
                # Created concurrently by another request
                await session.rollback()
                account = await accounts.get_by_user_id(user_id)
                if account is None:
                    raise
                return account

            logger.info(
                "Referral account created",
                extra={"user_id": user_id, "referral_code": code},
            )
            return account

    async def verify_code(self, referral_code: str) -> ReferralAccount:
        """
        Resolve a referral code.

        Raises:
            InvalidReferralCode: No account has this code
        """
        async with self.session_factory() as session:
            account = await ReferralAccountRepository(session).get_by_referral_code(
                referral_code
            )
        if not account:
            raise InvalidReferralCode()
        return account

    async def get_dashboard(self, user_id: str) -> dict[str, Any]:
        """
        Dashboard view of a user's referral account.

        Creates the account on first access.

        Returns:
            Dict with code, counters, balances, rates and recent ledger
        """
        account = await self.get_or_create_account(user_id)

        async with self.session_factory() as session:
            recent = await CommissionTransactionRepository(session).get_for_user(
                user_id, limit=DASHBOARD_RECENT_TRANSACTIONS
            )

        return {
            "referral_code": account.referral_code,
            "total_referrals": account.total_referrals,
            "active_referrals": account.active_referrals,
            "level1_referrals": account.level1_referrals,
            "level2_referrals": account.level2_referrals,
            "level3_referrals": account.level3_referrals,
            "total_earnings": account.total_earnings,
            "available_balance": account.available_balance,
            "pending_withdrawal": account.pending_withdrawal,
            "monthly_earnings": account.monthly_earnings,
            "commission_rates": account.commission_rates,
            "recent_transactions": [_transaction_view(tx) for tx in recent],
        }

    async def get_referrals(self, user_id: str) -> dict[str, Any]:
        """
        Downline list of a user.

        Raises:
            ReferralAccountNotFound: User has no referral account
        """
        async with self.session_factory() as session:
            account = await ReferralAccountRepository(session).get_by_user_id(user_id)
            if not account:
                raise ReferralAccountNotFound()

            entries = await ReferralDownlineRepository(session).get_for_account(
                account.id
            )

        return {
            "total_referrals": account.total_referrals,
            "referrals": [
                {
                    "id": entry.id,
                    "user_id": entry.referred_user_id,
                    "level": entry.level,
                    "joined_at": entry.joined_at,
                    "is_active": entry.is_active,
                    "total_earned": entry.total_earned,
                }
                for entry in entries
            ],
        }

    async def get_transactions(
        self,
        user_id: str,
        type: str | None = None,
        limit: int = 50,
    ) -> dict[str, Any]:
        """
        Ledger history of a user, newest first.

        Args:
            user_id: Account owner
            type: Optional type filter, "all" means no filter
            limit: Max number of entries

        Returns:
            Dict with count and transactions
        """
        if type == "all":
            type = None

        async with self.session_factory() as session:
            transactions = await CommissionTransactionRepository(session).get_for_user(
                user_id, type=type, limit=limit
            )

        return {
            "count": len(transactions),
            "transactions": [_transaction_view(tx) for tx in transactions],
        }

    async def get_stats(self) -> dict[str, int | Decimal]:
        """
        Program-wide statistics (admin).

        Returns:
            Dict with total_accounts, active_accounts, total_earnings,
            total_referrals
        """
        async with self.session_factory() as session:
            return await ReferralAccountRepository(session).get_program_totals()
