"""
Custom exceptions for the account security domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.). The sanitizer, validator
and governor never let them escape; they are raised by repository adapters
and by the HTTP surface.
"""

from typing import Any, Dict, Optional


class AccountSecurityException(Exception):
    """Base exception for all account security errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class FieldValidationException(AccountSecurityException):
    """Raised when a submitted form payload fails field validation."""

    def __init__(self, errors: Dict[str, str]):
        fields = ", ".join(sorted(errors))
        super().__init__(
            message=f"Validation failed for: {fields}", details={"errors": errors}
        )
        self.errors = errors


class AccountLockedException(AccountSecurityException):
    """Raised when a login is attempted against a temporarily locked account."""

    def __init__(self, message: str, lockout_minutes: Optional[int] = None):
        super().__init__(
            message=message, details={"lockout_minutes": lockout_minutes}
        )
        self.lockout_minutes = lockout_minutes

    @property
    def retry_after_seconds(self) -> Optional[int]:
        """Seconds until the lockout window closes, rounded up to the minute."""
        if not self.lockout_minutes:
            return None
        return self.lockout_minutes * 60


class InfrastructureError(AccountSecurityException):
    """Raised when account lookup, record storage or event emission fails."""

    def __init__(self, service: str, reason: Optional[Any] = None):
        message = f"Infrastructure service '{service}' failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"service": service, "reason": str(reason)}
        )
        self.service = service
