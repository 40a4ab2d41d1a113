# storefront/domain/errors.py
"""
Error taxonomy of the checkout engine.

Every error carries a message that is safe to show to the end user;
routers translate ``status_code`` to the HTTP response.
"""


class StorefrontError(Exception):
    status_code = 400

    def __init__(self, message: str, details: list | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(StorefrontError):
    """Malformed input, rejected before any side effect."""

    status_code = 400


class NotFoundError(StorefrontError):
    status_code = 404


class BusinessLogicError(StorefrontError):
    """A domain rule was violated."""

    status_code = 400


class InsufficientStockError(BusinessLogicError):
    def __init__(self, product_id: int, available: int, message: str | None = None):
        super().__init__(message or f"Only {available} items available")
        self.product_id = product_id
        self.available = available


class QuotaExceededError(BusinessLogicError):
    pass


class RecoveryExpiredError(BusinessLogicError):
    status_code = 410


class ConflictError(StorefrontError):
    status_code = 409


class StoreUnavailableError(StorefrontError):
    """External store (Redis, database, tax service) unreachable or timed out."""

    status_code = 503
