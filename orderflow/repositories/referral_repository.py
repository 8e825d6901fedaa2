"""
Referral repositories.

Data access layer for ReferralAccount, ReferralDownline and
CommissionTransaction models.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.models.referral import (
    CommissionTransaction,
    ReferralAccount,
    ReferralDownline,
)
from orderflow.repositories.base import BaseRepository


# Level-specific counter column per referral level
LEVEL_COUNTER_COLUMNS = {
    1: "level1_referrals",
    2: "level2_referrals",
    3: "level3_referrals",
}


class ReferralAccountRepository(BaseRepository[ReferralAccount]):
    """Referral account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral account repository."""
        super().__init__(ReferralAccount, session)

    async def get_by_user_id(self, user_id: str) -> ReferralAccount | None:
        """
        Get account by owner.

        Args:
            user_id: Owner subject id

        Returns:
            ReferralAccount or None
        """
        return await self.get_by(user_id=user_id)

    async def get_by_referral_code(
        self, referral_code: str
    ) -> ReferralAccount | None:
        """
        Get account by referral code (case-insensitive).

        Args:
            referral_code: Referral code in any case

        Returns:
            ReferralAccount or None
        """
        if not referral_code:
            return None
        return await self.get_by(referral_code=referral_code.strip().upper())

    async def code_exists(self, referral_code: str) -> bool:
        """Check whether a referral code is taken."""
        return await self.exists(referral_code=referral_code)

    async def credit_referral(
        self, account_id: int, level: int, bonus: Decimal
    ) -> bool:
        """
        Record one new downline member and its bonus on an ancestor.

        Increments total/active/level counters and the three earnings
        aggregates in a single atomic UPDATE.

        Args:
            account_id: Ancestor account ID
            level: Distance to the new joiner (1-3)
            bonus: Bonus amount

        Returns:
            True if the account was updated
        """
        return await self.increment(
            account_id,
            total_referrals=1,
            active_referrals=1,
            total_earnings=bonus,
            available_balance=bonus,
            monthly_earnings=bonus,
            **{LEVEL_COUNTER_COLUMNS[level]: 1},
        )

    async def get_program_totals(self) -> dict[str, int | Decimal]:
        """
        Program-wide aggregates in a single query.

        Returns:
            Dict with total_accounts, active_accounts, total_earnings,
            total_referrals
        """
        stmt = select(
            func.count(ReferralAccount.id).label("total_accounts"),
            func.coalesce(
                func.sum(ReferralAccount.total_earnings), Decimal("0")
            ).label("total_earnings"),
            func.coalesce(
                func.sum(ReferralAccount.total_referrals), 0
            ).label("total_referrals"),
        )
        row = (await self.session.execute(stmt)).one()

        active_accounts = await self.count(is_active=True)

        return {
            "total_accounts": row.total_accounts or 0,
            "active_accounts": active_accounts,
            "total_earnings": Decimal(str(row.total_earnings or 0)),
            "total_referrals": int(row.total_referrals or 0),
        }


class ReferralDownlineRepository(BaseRepository[ReferralDownline]):
    """Downline entry repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize downline repository."""
        super().__init__(ReferralDownline, session)

    async def get_for_account(self, account_id: int) -> list[ReferralDownline]:
        """
        Downline entries of an account in join order.

        Args:
            account_id: Ancestor account ID

        Returns:
            List of downline entries
        """
        return await self.find_all(
            order_by=ReferralDownline.id, account_id=account_id
        )

    async def get_level_counts(self, account_id: int) -> dict[int, int]:
        """
        Count downline entries per level in a single query.

        Args:
            account_id: Ancestor account ID

        Returns:
            Dict mapping level to count {1: count1, 2: count2, 3: count3}
        """
        stmt = (
            select(
                ReferralDownline.level,
                func.count(ReferralDownline.id).label("entries"),
            )
            .where(ReferralDownline.account_id == account_id)
            .group_by(ReferralDownline.level)
        )
        result = await self.session.execute(stmt)

        level_counts = {1: 0, 2: 0, 3: 0}
        for row in result.all():
            level_counts[row.level] = row.entries

        return level_counts


class CommissionTransactionRepository(BaseRepository[CommissionTransaction]):
    """Commission ledger repository. Insert and read only."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission transaction repository."""
        super().__init__(CommissionTransaction, session)

    async def get_by_idempotency_key(
        self, key: str
    ) -> CommissionTransaction | None:
        """Get ledger entry by idempotency key."""
        return await self.get_by(idempotency_key=key)

    async def get_for_user(
        self,
        user_id: str,
        type: str | None = None,
        limit: int = 50,
    ) -> list[CommissionTransaction]:
        """
        Ledger entries of a user, newest first.

        Args:
            user_id: Account owner
            type: Optional transaction type filter
            limit: Max number of entries

        Returns:
            List of ledger entries
        """
        stmt = select(CommissionTransaction).where(
            CommissionTransaction.user_id == user_id
        )
        if type:
            stmt = stmt.where(CommissionTransaction.type == type)
        stmt = stmt.order_by(
            CommissionTransaction.transaction_date.desc(),
            CommissionTransaction.id.desc(),
        ).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
