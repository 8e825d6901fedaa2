"""
Referral commission cascade.

Creates the referral account of a new joiner and walks up the
``referred_by`` chain, crediting each ancestor (at most REFERRAL_DEPTH)
with a downline entry, a ledger entry and a flat bonus.

Each ancestor is credited in its own short transaction. Counters and
balances change only through one atomic UPDATE per ancestor, so
concurrent registrations under the same referrer never lose increments.
Every credit carries the idempotency key ``"<new_user_id>:<level>"``; a
retried registration skips levels that are already booked and finishes
the rest.
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.config.business_constants import (
    REFERRAL_BONUS_AMOUNTS,
    REFERRAL_DEPTH,
    TransactionStatus,
    TransactionType,
)
from orderflow.models.referral import ReferralAccount
from orderflow.repositories.referral_repository import (
    CommissionTransactionRepository,
    ReferralAccountRepository,
    ReferralDownlineRepository,
)
from orderflow.services.referral.code_generator import (
    generate_unique_referral_code,
)
from orderflow.utils.datetime_utils import utc_now
from orderflow.utils.exceptions import (
    InvalidReferralCode,
    PersistenceFailure,
    ReferralAccountExists,
)


# Unique-index races on account creation are retried this many times
MAX_ACCOUNT_CREATE_ATTEMPTS = 3


def idempotency_key(new_user_id: str, level: int) -> str:
    """Ledger key of the credit for ``new_user_id`` at ``level``."""
    return f"{new_user_id}:{level}"


def bonus_for_level(level: int) -> Decimal:
    """
    Flat bonus paid to the ancestor at ``level``.

    Args:
        level: Distance to the new joiner (1-3)

    Returns:
        Bonus amount (0 outside the schedule)
    """
    return REFERRAL_BONUS_AMOUNTS.get(level, Decimal("0"))


def describe_credit(level: int, new_user_id: str) -> tuple[str, str]:
    """
    Ledger type and description of a cascade credit.

    Returns:
        Tuple of (transaction type, description)
    """
    if level == 1:
        return (
            TransactionType.REFERRAL.value,
            f"Level 1 Referral Bonus for user {new_user_id}",
        )
    return (
        TransactionType.COMMISSION.value,
        f"Level {level} Referral Commission for user {new_user_id}",
    )


class ReferralCascade:
    """Registers a new joiner and distributes referral bonuses."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize cascade.

        Args:
            session_factory: Session maker; one session per ancestor
        """
        self.session_factory = session_factory

    async def register_referral(
        self,
        new_user_id: str,
        referrer_user_id: str,
        now: datetime | None = None,
    ) -> str:
        """
        Register ``new_user_id`` as referred by ``referrer_user_id``.

        Args:
            new_user_id: Newly created user (opaque subject id)
            referrer_user_id: Owner of the presented referral code
            now: Join time (defaults to current UTC time)

        Returns:
            Referral code of the new account

        Raises:
            InvalidReferralCode: Self referral or unknown referrer
            ReferralAccountExists: New user already has an account linked
                to someone else
            PersistenceFailure: Database error; levels credited before the
                failure stay committed and a retry completes the rest
        """
        now = now or utc_now()

        if new_user_id == referrer_user_id:
            raise InvalidReferralCode("You cannot use your own referral code")

        referral_code = await self._create_account(new_user_id, referrer_user_id)

        visited = {new_user_id}
        target_user_id: str | None = referrer_user_id
        level = 1
        credited = 0

        while target_user_id is not None and level <= REFERRAL_DEPTH:
            if target_user_id in visited:
                logger.warning(
                    "Referral loop detected",
                    extra={
                        "new_user_id": new_user_id,
                        "ancestor_user_id": target_user_id,
                        "level": level,
                    },
                )
                break
            visited.add(target_user_id)

            found, target_user_id = await self._credit_ancestor(
                target_user_id, new_user_id, level, now
            )
            if not found:
                break
            credited += 1
            level += 1

        logger.info(
            "Referral chain created",
            extra={
                "new_user_id": new_user_id,
                "referrer_user_id": referrer_user_id,
                "levels_credited": credited,
            },
        )

        return referral_code

    async def _create_account(
        self, new_user_id: str, referrer_user_id: str
    ) -> str:
        """
        Create the new joiner's account, or reuse it on retry.

        Returns:
            Referral code of the new account
        """
        for attempt in range(1, MAX_ACCOUNT_CREATE_ATTEMPTS + 1):
            async with self.session_factory() as session:
                accounts = ReferralAccountRepository(session)
                try:
                    referrer = await accounts.get_by_user_id(referrer_user_id)
                    if not referrer:
                        raise InvalidReferralCode()

                    existing = await accounts.get_by_user_id(new_user_id)
                    if existing:
                        return self._reuse_account(existing, referrer_user_id)

                    code = await generate_unique_referral_code(accounts)
                    await accounts.create(
                        user_id=new_user_id,
                        referral_code=code,
                        referred_by=referrer_user_id,
                    )
                    await session.commit()

                except IntegrityError as e:
                    # Lost a race on user_id or referral_code; re-read and retry
                    await session.rollback()
                    logger.warning(
                        "Referral account insert conflicted, retrying",
                        extra={
                            "new_user_id": new_user_id,
                            "attempt": attempt,
                            "error": str(e.orig),
                        },
                    )
                    continue
                except SQLAlchemyError as e:
                    await session.rollback()
                    logger.error(
                        "Failed to create referral account",
                        extra={"new_user_id": new_user_id, "error": str(e)},
                    )
                    raise PersistenceFailure() from e

                logger.info(
                    "Referral account created",
                    extra={
                        "user_id": new_user_id,
                        "referral_code": code,
                        "referred_by": referrer_user_id,
                    },
                )
                return code

        raise PersistenceFailure()

    @staticmethod
    def _reuse_account(account: ReferralAccount, referrer_user_id: str) -> str:
        if account.referred_by != referrer_user_id:
            raise ReferralAccountExists()

        logger.info(
            "Resuming referral cascade for existing account",
            extra={"user_id": account.user_id, "referred_by": referrer_user_id},
        )
        return account.referral_code

    async def _credit_ancestor(
        self,
        target_user_id: str,
        new_user_id: str,
        level: int,
        now: datetime,
    ) -> tuple[bool, str | None]:
        """
        Credit one ancestor in its own transaction.

        Returns:
            Tuple of (ancestor found, ancestor's own referrer)
        """
        key = idempotency_key(new_user_id, level)

        async with self.session_factory() as session:
            accounts = ReferralAccountRepository(session)
            downlines = ReferralDownlineRepository(session)
            ledger = CommissionTransactionRepository(session)

            try:
                target = await accounts.get_by_user_id(target_user_id)
                if not target:
                    logger.warning(
                        "Referral ancestor has no account",
                        extra={"ancestor_user_id": target_user_id, "level": level},
                    )
                    return False, None

                next_user_id = target.referred_by

                if await ledger.get_by_idempotency_key(key):
                    logger.debug(
                        "Referral level already credited",
                        extra={"key": key, "ancestor_user_id": target_user_id},
                    )
                    return True, next_user_id

                bonus = bonus_for_level(level)
                tx_type, description = describe_credit(level, new_user_id)

                await downlines.create(
                    account_id=target.id,
                    referred_user_id=new_user_id,
                    level=level,
                    joined_at=now,
                    is_active=True,
                    total_earned=Decimal("0"),
                )
                await ledger.create(
                    account_id=target.id,
                    user_id=target.user_id,
                    type=tx_type,
                    amount=bonus,
                    description=description,
                    related_user_id=new_user_id,
                    level=level,
                    status=TransactionStatus.COMPLETED.value,
                    transaction_date=now,
                    idempotency_key=key,
                )
                await accounts.credit_referral(target.id, level, bonus)
                await session.commit()

            except IntegrityError as e:
                await session.rollback()
                if await ledger.get_by_idempotency_key(key):
                    # A concurrent retry booked this level first
                    return True, next_user_id
                logger.error(
                    "Referral credit violated a constraint",
                    extra={"key": key, "error": str(e.orig)},
                )
                raise PersistenceFailure() from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(
                    "Referral credit failed",
                    extra={
                        "key": key,
                        "ancestor_user_id": target_user_id,
                        "level": level,
                        "error": str(e),
                    },
                )
                raise PersistenceFailure() from e

        logger.info(
            "Referral bonus credited",
            extra={
                "ancestor_user_id": target_user_id,
                "new_user_id": new_user_id,
                "level": level,
                "amount": str(bonus),
                "type": tx_type,
            },
        )
        return True, next_user_id
