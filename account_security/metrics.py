"""
Prometheus metrics for the account security service.

Tracks login attempt decisions, lockouts, fail-open events and security
event emission.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Governor metrics
login_attempt_checks_total = Counter(
    "account_security_login_checks_total",
    "Login attempt checks by decision",
    ["decision"],
)

failed_logins_recorded_total = Counter(
    "account_security_failed_logins_total",
    "Failed logins recorded by outcome",
    ["outcome"],
)

account_lockouts_total = Counter(
    "account_security_lockouts_total", "Accounts locked after repeated failures"
)

governor_fail_open_total = Counter(
    "account_security_fail_open_total",
    "Governor operations that failed open after an infrastructure error",
    ["operation"],
)

# Audit metrics
security_events_total = Counter(
    "account_security_events_total",
    "Security events emitted",
    ["event_type", "success"],
)


async def metrics_endpoint() -> Response:
    """Expose metrics in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
