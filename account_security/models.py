"""
Pydantic models for request/response schemas.

Defines data models for the login attempt and form validation endpoints.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .domain.entities import FieldConfig, LoginAttemptResult, SanitizationType

# Request Models


class LoginAttemptRequest(BaseModel):
    """Model for checking or recording a login attempt."""

    identifier: str = Field(..., max_length=320)


class ClearAttemptsRequest(BaseModel):
    """Model for clearing failed attempts after a successful login."""

    account_id: str = Field(..., min_length=1, max_length=128)


class FieldRules(BaseModel):
    """Serializable field configuration."""

    type: SanitizationType = SanitizationType.TEXT
    max_length: Optional[int] = Field(None, ge=0)
    min: Optional[float] = None
    max: Optional[float] = None
    required: bool = False
    pattern: Optional[str] = None

    def to_field_config(self) -> FieldConfig:
        return FieldConfig(
            type=self.type,
            max_length=self.max_length,
            min=self.min,
            max=self.max,
            required=self.required,
            pattern=self.pattern,
        )


class FormValidationRequest(BaseModel):
    """Model for sanitizing and validating a whole form payload."""

    values: Dict[str, Any]
    fields: Dict[str, FieldRules] = Field(default_factory=dict)


# Response Models


class LoginAttemptResponse(BaseModel):
    """Model for governor decisions."""

    allowed: bool
    remaining_attempts: Optional[int] = None
    lockout_until: Optional[datetime] = None
    lockout_minutes: Optional[int] = None
    message: Optional[str] = None
    display_message: str = ""

    @classmethod
    def from_result(cls, result: LoginAttemptResult, display_message: str = "") -> "LoginAttemptResponse":
        return cls(**result.to_dict(), display_message=display_message)


class FormValidationResponse(BaseModel):
    """Model for a valid, sanitized form payload."""

    valid: bool
    values: Dict[str, Any]
