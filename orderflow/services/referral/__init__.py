"""
Referral services package.

Contains modular services for referral processing:
- code_generator: Referral code generation
- cascade: Account creation and the multi-level bonus cascade
- query_manager: Dashboards, downlines, ledger history and statistics
"""

from orderflow.config.business_constants import (
    REFERRAL_BONUS_AMOUNTS,
    REFERRAL_DEPTH,
)
from orderflow.services.referral.cascade import (
    ReferralCascade,
    bonus_for_level,
    describe_credit,
    idempotency_key,
)
from orderflow.services.referral.code_generator import (
    generate_referral_code,
    generate_unique_referral_code,
)
from orderflow.services.referral.query_manager import ReferralQueryManager


__all__ = [
    # Configuration
    "REFERRAL_DEPTH",
    "REFERRAL_BONUS_AMOUNTS",
    # Managers
    "ReferralCascade",
    "ReferralQueryManager",
    # Helpers
    "bonus_for_level",
    "describe_credit",
    "idempotency_key",
    "generate_referral_code",
    "generate_unique_referral_code",
]
