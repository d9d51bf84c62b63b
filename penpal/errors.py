"""
Domain errors.

Each error is an ``HTTPException`` carrying a stable machine-readable ``code``;
services raise them directly and ``penpal.main`` renders them as
``{"error": code, "detail": message}``.
"""

from typing import Optional

from fastapi import HTTPException, status


class PenpalError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"
    default_detail = "Unexpected error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)


class NotAuthenticated(PenpalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"
    default_detail = "User not authenticated"


class AdminRequired(PenpalError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "admin_required"
    default_detail = "Admin access required for this endpoint"


class NotFound(PenpalError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class InsufficientCredits(PenpalError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "insufficient_credits"
    default_detail = "Insufficient credits"


class GenerationFailed(PenpalError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "generation_failed"
    default_detail = "Failed to generate letter response"


class PaymentNotCompleted(PenpalError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "payment_not_completed"
    default_detail = "Payment not completed"


class InvalidCreditKind(PenpalError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_credit_kind"
    default_detail = 'Invalid credit type. Must be "physical" or "digital"'


class ConflictingState(PenpalError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflicting_state"
    default_detail = "Concurrent update detected, please retry"


class PaymentProviderError(PenpalError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "payment_provider_error"
    default_detail = "Payment provider request failed"


class StorageError(PenpalError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "storage_error"
    default_detail = "Failed to store uploaded file"


class InvalidUpload(PenpalError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_upload"
    default_detail = "Invalid upload"
