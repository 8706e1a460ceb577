# app/core/errors.py
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base error with a stable shape for API responses."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def public_details(self) -> Optional[Dict[str, Any]]:
        # only subclasses that know their payload is safe expose it
        return None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        details = self.public_details()
        if details:
            body["details"] = details
        return body


# --- bad input, never retried ---

class ValidationError(AppError):
    status_code = 400
    code = "validation_error"

    def public_details(self):
        return self.details or None


class InvalidAmount(ValidationError):
    code = "invalid_amount"


class InvalidReview(ValidationError):
    code = "invalid_review"


class InvalidWebhook(ValidationError):
    code = "invalid_webhook"


# --- processor side ---

class UpstreamRejection(AppError):
    code = "payment_processing_error"


class PaymentSubmissionFailed(UpstreamRejection):
    """Processor answered the charge with a 4xx/5xx. `details` holds its raw payload."""

    SAFE_KEYS = ("status", "error", "message", "cause")

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.upstream_status = status_code

    def public_details(self):
        safe = {k: self.details[k] for k in self.SAFE_KEYS if k in self.details}
        if "cause" in safe and isinstance(safe["cause"], list):
            safe["cause"] = [
                {"code": c.get("code"), "description": c.get("description")}
                for c in safe["cause"]
                if isinstance(c, dict)
            ]
        return safe or None


class ProcessorUnavailable(UpstreamRejection):
    """Timeout or transport failure talking to the processor."""

    code = "processor_unavailable"


# --- storage ---

class PersistenceFailure(AppError):
    code = "persistence_failure"

    def __init__(self, message: str, payment_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.payment_id = payment_id

    def public_details(self):
        if self.payment_id:
            return {"payment_id": self.payment_id}
        return None


class DuplicatePaymentId(PersistenceFailure):
    code = "duplicate_payment_id"


class RecordNotFound(PersistenceFailure):
    code = "record_not_found"


class NotificationFailure(AppError):
    """Raised by mailers; the notifier logs it and never lets it escape."""

    code = "notification_failure"
