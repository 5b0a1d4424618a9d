"""Error taxonomy for the order-placement pipeline.

Every error carries the HTTP status it maps to and a message that is safe to
show the user. ``cause`` keeps the underlying exception text for logs and for
non-production responses.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for pipeline errors."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, *, cause: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)


class AuthError(StorefrontError):
    """No valid user session."""

    status_code = 401
    default_message = "Unauthorized"


class ValidationError(StorefrontError):
    """Malformed or semantically invalid request."""

    status_code = 400
    default_message = "Invalid request."


class ReferenceDataError(StorefrontError):
    """Catalog or other reference data could not be resolved."""

    status_code = 404
    default_message = "Not found"


class CatalogUnavailableError(ReferenceDataError):
    """The catalog could not be read at all. Not the same as a missing product."""

    status_code = 503
    default_message = "Product catalog is unavailable."


class ConflictError(StorefrontError):
    """The same submission is already being processed."""

    status_code = 409
    default_message = "This order is already being processed."


class PersistenceError(StorefrontError):
    """Order header or item write failed."""

    status_code = 500
    default_message = "Failed to create order."


class PaymentGatewayError(StorefrontError):
    """Intent creation failed or the gateway reported a failed payment."""

    status_code = 502
    default_message = "Payment could not be processed. Please try again."


class SignatureVerificationError(StorefrontError):
    """Payment proof could not be verified."""

    status_code = 400
    default_message = "Payment verification failed."
