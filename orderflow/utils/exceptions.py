"""
Exception handling utilities.

Defines the domain exceptions raised by services and the categories
callers use to map them to client or server errors.
"""

from sqlalchemy.exc import OperationalError


class OrderflowError(Exception):
    """Base class for domain errors.

    ``message`` is safe to show to the end user; ``code`` is a stable
    machine-readable identifier.
    """

    code = "orderflow_error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__doc__.strip().splitlines()[0]
        super().__init__(self.message)


# Checkout

class InvalidOrderLine(OrderflowError):
    """Order line is invalid."""

    code = "invalid_order_line"


class OfferNotFound(OrderflowError):
    """Offer not found."""

    code = "offer_not_found"


class OfferNotStarted(OrderflowError):
    """Offer not started."""

    code = "offer_not_started"


class OfferExpired(OrderflowError):
    """Offer expired."""

    code = "offer_expired"


class OfferAlreadyExists(OrderflowError):
    """Code already exists."""

    code = "offer_already_exists"


class InvalidOffer(OrderflowError):
    """Offer definition is invalid."""

    code = "invalid_offer"


class OrderNotFound(OrderflowError):
    """Order not found."""

    code = "order_not_found"


class OrderNotCancellable(OrderflowError):
    """Order cannot be cancelled."""

    code = "order_not_cancellable"


class InvalidOrderStatus(OrderflowError):
    """Invalid order status."""

    code = "invalid_order_status"


# Referral program

class InvalidReferralCode(OrderflowError):
    """Invalid referral code."""

    code = "invalid_referral_code"


class ReferralAccountExists(OrderflowError):
    """Referral account already exists."""

    code = "referral_account_exists"


class ReferralAccountNotFound(OrderflowError):
    """Referral account not found."""

    code = "referral_account_not_found"


# Infrastructure

class PersistenceFailure(OrderflowError):
    """Server error."""

    code = "persistence_failure"


# Exception categories based on handling strategy

# Caller's fault - return a descriptive message, never retry
CLIENT_ERRORS = (
    InvalidOrderLine,
    OfferNotFound,
    OfferNotStarted,
    OfferExpired,
    OfferAlreadyExists,
    InvalidOffer,
    OrderNotFound,
    OrderNotCancellable,
    InvalidOrderStatus,
    InvalidReferralCode,
    ReferralAccountExists,
    ReferralAccountNotFound,
)

# Transient storage problems - safe to retry idempotent operations
RETRYABLE = (
    PersistenceFailure,
    OperationalError,
)


def is_client_error(exc: Exception) -> bool:
    """
    Check if exception should be reported as a client error.

    Args:
        exc: Exception to check

    Returns:
        True if exception is caused by invalid input
    """
    return isinstance(exc, CLIENT_ERRORS)


def is_retryable(exc: Exception) -> bool:
    """
    Check if the failed operation may be retried.

    Args:
        exc: Exception to check

    Returns:
        True if exception is a transient persistence error
    """
    return isinstance(exc, RETRYABLE)
