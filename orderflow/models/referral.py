"""
Referral models.

ReferralAccount is the per-user aggregate of the referral program,
ReferralDownline holds the accounts an ancestor earned from and
CommissionTransaction is the append-only bonus ledger.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderflow.config.business_constants import (
    DEFAULT_COMMISSION_RATES,
    TransactionStatus,
)
from orderflow.models.base import Base
from orderflow.models.types import MoneyType, PercentType
from orderflow.utils.datetime_utils import utc_now


class ReferralAccount(Base):
    """
    ReferralAccount entity.

    Counters and balances are only ever changed with field-scoped atomic
    UPDATE statements (see ReferralAccountRepository.credit_referral).

    Attributes:
        id: Primary key
        user_id: Owner (opaque subject id), one account per user
        referral_code: Unique invitation code, e.g. KS4AB12CD
        referred_by: user_id of the account that invited this user
        total_referrals: level1 + level2 + level3
        active_referrals: Referrals whose downline entry is active
        level1_referrals: Direct referrals
        level2_referrals: Referrals of direct referrals
        level3_referrals: Third-level referrals
        total_earnings: Lifetime bonus earnings
        available_balance: Withdrawable balance
        pending_withdrawal: Balance locked in withdrawal requests
        monthly_earnings: Earnings in the current month
        commission_rate_level1: Rate table, percent (stored, not applied)
        commission_rate_level2: Rate table, percent (stored, not applied)
        commission_rate_level3: Rate table, percent (stored, not applied)
        is_active: Account status, never set false by current code paths
    """

    __tablename__ = "referral_accounts"
    __table_args__ = (
        CheckConstraint(
            'total_referrals = level1_referrals + level2_referrals + level3_referrals',
            name='check_referral_totals_consistent',
        ),
        CheckConstraint(
            'available_balance >= 0',
            name='check_referral_balance_non_negative',
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )
    referred_by: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )

    # Referral stats
    total_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    active_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    level1_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    level2_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    level3_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Earnings
    total_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    available_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    pending_withdrawal: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    monthly_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Commission rates
    commission_rate_level1: Mapped[Decimal] = mapped_column(
        PercentType, default=DEFAULT_COMMISSION_RATES[1], nullable=False
    )
    commission_rate_level2: Mapped[Decimal] = mapped_column(
        PercentType, default=DEFAULT_COMMISSION_RATES[2], nullable=False
    )
    commission_rate_level3: Mapped[Decimal] = mapped_column(
        PercentType, default=DEFAULT_COMMISSION_RATES[3], nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )

    downlines: Mapped[list["ReferralDownline"]] = relationship(
        "ReferralDownline",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="ReferralDownline.id",
    )

    @property
    def commission_rates(self) -> dict[int, Decimal]:
        """Rate table keyed by level."""
        return {
            1: self.commission_rate_level1,
            2: self.commission_rate_level2,
            3: self.commission_rate_level3,
        }

    def __repr__(self) -> str:
        return (
            f"<ReferralAccount(user_id={self.user_id!r}, "
            f"code={self.referral_code!r}, referred_by={self.referred_by!r})>"
        )


class ReferralDownline(Base):
    """
    Downline entry: one referred user credited to an ancestor.

    The same new joiner appears once per ancestor, tagged with the
    distance (level 1-3) between them.
    """

    __tablename__ = "referral_downlines"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "referred_user_id", name="uq_downline_account_referred"
        ),
        CheckConstraint('level BETWEEN 1 AND 3', name='check_downline_level_range'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("referral_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referred_user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    account: Mapped["ReferralAccount"] = relationship(
        "ReferralAccount", back_populates="downlines"
    )


class CommissionTransaction(Base):
    """
    Commission ledger entry. Never updated after insert.

    Attributes:
        id: Primary key
        account_id: Credited referral account
        user_id: Owner of the credited account
        type: referral, task, withdrawal, bonus or commission
        amount: Credited amount
        description: Human readable description
        related_user_id: User whose action triggered the entry
        level: Referral level (1-3) for cascade entries
        status: pending, completed or failed
        transaction_date: When the entry was booked
        idempotency_key: "<new_user_id>:<level>" for cascade entries
    """

    __tablename__ = "commission_transactions"
    __table_args__ = (
        Index("idx_commission_tx_user_date", "user_id", "transaction_date"),
        Index("idx_commission_tx_type", "type"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("referral_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    related_user_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.COMPLETED.value, nullable=False
    )
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(100), unique=True, nullable=True
    )
