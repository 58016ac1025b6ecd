"""
Security audit events for login governance.

Wraps the security event sink so that emission is fire-and-forget: details
are redacted, the outcome is counted, and sink failures are logged instead
of propagated.
"""

from enum import Enum
from typing import Any, Dict, Optional

import structlog

from .metrics import security_events_total
from .repositories.base import ISecurityEventSink

logger = structlog.get_logger(__name__)


class SecurityEventType(str, Enum):
    """Standard security event types."""

    FAILED_LOGIN = "failed_login"
    SUCCESSFUL_LOGIN = "successful_login"


SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "secret",
    "api_key",
    "private_key",
}


class SecurityAuditService:
    """
    Emits security events through an injected sink.

    Never raises; ``log_security_event`` reports success as a boolean.
    """

    def __init__(self, sink: ISecurityEventSink):
        self.sink = sink

    async def log_security_event(
        self,
        account_id: str,
        event_type: SecurityEventType,
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Emit a security event.

        Args:
            account_id: Account the event concerns
            event_type: Event type
            details: Event payload (sensitive keys are redacted)

        Returns:
            True if the sink accepted the event, False otherwise
        """
        payload = self._sanitize_values(details or {})
        try:
            await self.sink.emit(account_id, event_type.value, payload)
        except Exception as e:
            security_events_total.labels(event_type=event_type.value, success="False").inc()
            logger.error(
                "Failed to emit security event",
                event_type=event_type.value,
                account_id=account_id,
                error=str(e),
            )
            return False

        security_events_total.labels(event_type=event_type.value, success="True").inc()
        logger.debug(
            "Security event emitted", event_type=event_type.value, account_id=account_id
        )
        return True

    @staticmethod
    def _sanitize_values(values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove sensitive fields from event details.

        Args:
            values: Dictionary of values to sanitize

        Returns:
            Sanitized dictionary with sensitive fields masked
        """
        sanitized = {}
        for key, value in values.items():
            if any(s in key.lower() for s in SENSITIVE_FIELDS):
                sanitized[key] = "REDACTED"
            elif isinstance(value, dict):
                sanitized[key] = SecurityAuditService._sanitize_values(value)
            else:
                sanitized[key] = value

        return sanitized
