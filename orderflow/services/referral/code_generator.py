"""
Referral code generation.

Codes are the platform prefix followed by random upper-case letters and
digits, e.g. ``KS4Q7M2ZA``.
"""

import secrets

from orderflow.config.business_constants import (
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_RANDOM_LENGTH,
)
from orderflow.config.settings import settings
from orderflow.repositories.referral_repository import ReferralAccountRepository


def generate_referral_code(prefix: str | None = None) -> str:
    """
    Generate a random referral code (uniqueness not checked).

    Args:
        prefix: Platform prefix, defaults to settings.referral_code_prefix

    Returns:
        Code such as KS4Q7M2ZA
    """
    prefix = prefix if prefix is not None else settings.referral_code_prefix
    suffix = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET)
        for _ in range(REFERRAL_CODE_RANDOM_LENGTH)
    )
    return f"{prefix}{suffix}"


async def generate_unique_referral_code(
    account_repo: ReferralAccountRepository,
    prefix: str | None = None,
) -> str:
    """
    Generate a referral code not used by any existing account.

    Args:
        account_repo: Repository bound to the current session
        prefix: Platform prefix, defaults to settings.referral_code_prefix

    Returns:
        Unused referral code
    """
    while True:
        code = generate_referral_code(prefix)
        # Collisions are rare at 36^6 but must never reach the unique index
        if not await account_repo.code_exists(code):
            return code
