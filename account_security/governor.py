"""
Login attempt governor with progressive lockout.

Decides whether a login attempt may proceed, records failures and locks an
account with an exponentially growing lockout once too many failures pile up
inside the attempt window.

Guarantees:
- Unknown identifiers get the same response as known accounts with no
  failures, so responses never reveal whether an account exists.
- Identifiers are trimmed and case-folded before every lookup.
- Any lookup or storage failure fails open: the attempt is allowed with the
  full allowance and the error is logged, never raised.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from .audit import SecurityAuditService, SecurityEventType
from .domain.entities import LockoutPolicy, LoginAttemptResult, SecurityRecord
from .domain.exceptions import InfrastructureError
from .metrics import (account_lockouts_total, failed_logins_recorded_total,
                      governor_fail_open_total, login_attempt_checks_total)
from .repositories.base import (IAccountLookup, ISecurityEventSink,
                                ISecurityRecordStore)

logger = structlog.get_logger(__name__)

MAX_FAILED_ATTEMPTS = 5
INITIAL_LOCKOUT_MINUTES = 5
MAX_LOCKOUT_MINUTES = 60
ATTEMPT_WINDOW_MINUTES = 15


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_identifier(identifier: Optional[str]) -> str:
    """Trim and case-fold an account identifier."""
    return str(identifier or "").strip().casefold()


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(minutes: int) -> str:
    """Render minutes as "2 hours and 1 minute", "1 hour" or "30 minutes"."""
    hours, remainder = divmod(minutes, 60)
    if hours == 0:
        return _plural(minutes, "minute")
    text = _plural(hours, "hour")
    if remainder:
        text += f" and {_plural(remainder, 'minute')}"
    return text


def lockout_message(minutes: int) -> str:
    return f"Account is locked. Please try again in {format_duration(minutes)}."


def get_lockout_message(result: LoginAttemptResult) -> str:
    """
    Render the user-facing message for a governor decision.

    Args:
        result: Governor decision

    Returns:
        Lockout message when denied with a lockout duration, the advisory
        message when allowed, otherwise an empty string
    """
    if not result.allowed and result.lockout_minutes and result.lockout_minutes > 0:
        return lockout_message(result.lockout_minutes)
    if result.allowed and result.message:
        return result.message
    return ""


def _minutes_until(until: datetime, now: datetime) -> int:
    return max(1, math.ceil((until - now).total_seconds() / 60))


class LoginAttemptGovernor:
    """
    Per-account login attempt state machine.

    States: unlocked, warning (within ``warning_threshold`` attempts of the
    limit, still allowed) and locked (an ``account_locked_until`` in the
    future).

    Attributes:
        account_lookup: Resolves identifiers to account ids
        record_store: Persists security records
        audit: Emits security events
        policy: Thresholds
        clock: Returns the current aware UTC datetime
    """

    def __init__(
        self,
        account_lookup: IAccountLookup,
        record_store: ISecurityRecordStore,
        event_sink: ISecurityEventSink,
        policy: Optional[LockoutPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.account_lookup = account_lookup
        self.record_store = record_store
        self.audit = SecurityAuditService(event_sink)
        self.policy = policy or LockoutPolicy()
        self.clock = clock

    get_lockout_message = staticmethod(get_lockout_message)

    @property
    def _window(self) -> timedelta:
        return timedelta(minutes=self.policy.attempt_window_minutes)

    def full_allowance(self) -> LoginAttemptResult:
        """The response for unknown accounts, clean accounts and infrastructure failures."""
        return LoginAttemptResult(
            allowed=True, remaining_attempts=self.policy.max_failed_attempts
        )

    def _attempts_in_window(self, record: SecurityRecord, now: datetime) -> int:
        """
        Failures that still count toward a lockout.

        Both the check and the record path derive the live attempt count
        from here; a stale run is ignored but not reset in storage.
        """
        if record.last_failed_attempt is None:
            return 0
        if now - record.last_failed_attempt > self._window:
            return 0
        return record.failed_attempts

    def _locked(self, until: datetime, now: datetime) -> LoginAttemptResult:
        minutes = _minutes_until(until, now)
        return LoginAttemptResult(
            allowed=False,
            remaining_attempts=0,
            lockout_until=until,
            lockout_minutes=minutes,
            message=lockout_message(minutes),
        )

    def _warning(self, remaining: int) -> Optional[str]:
        if 0 < remaining <= self.policy.warning_threshold:
            return (
                f"Warning: {_plural(remaining, 'login attempt')} remaining "
                "before your account is temporarily locked."
            )
        return None

    def _allowance(self, attempts: int) -> LoginAttemptResult:
        remaining = max(0, self.policy.max_failed_attempts - attempts)
        return LoginAttemptResult(
            allowed=remaining > 0,
            remaining_attempts=remaining,
            message=self._warning(remaining),
        )

    def _fail_open(self, operation: str, error: Exception) -> LoginAttemptResult:
        governor_fail_open_total.labels(operation=operation).inc()
        if isinstance(error, InfrastructureError):
            logger.error(
                "Security infrastructure unavailable, allowing login attempt",
                operation=operation,
                service=error.service,
                error=error.message,
            )
        else:
            logger.exception(
                "Unexpected error in login governor, allowing login attempt",
                operation=operation,
                error=str(error),
            )
        return self.full_allowance()

    async def _resolve(self, identifier: Optional[str]) -> Optional[str]:
        normalized = normalize_identifier(identifier)
        if not normalized:
            return None
        return await self.account_lookup.resolve(normalized)

    async def check_login_attempt(self, identifier: Optional[str]) -> LoginAttemptResult:
        """
        Decide whether a login attempt for an identifier may proceed.

        When the failure limit is reached inside the attempt window but the
        stored lockout has already expired, the attempt is still denied and
        ``lockout_until``/``lockout_minutes`` point at the end of the window
        (``last_failed_attempt + attempt_window_minutes``), not at a stored
        lockout.

        Args:
            identifier: Raw account identifier (e.g. email)

        Returns:
            LoginAttemptResult; never raises
        """
        try:
            result = await self._check(identifier)
        except Exception as e:
            login_attempt_checks_total.labels(decision="fail_open").inc()
            return self._fail_open("check_login_attempt", e)

        login_attempt_checks_total.labels(
            decision="allowed" if result.allowed else "denied"
        ).inc()
        return result

    async def _check(self, identifier: Optional[str]) -> LoginAttemptResult:
        now = self.clock()
        account_id = await self._resolve(identifier)
        if account_id is None:
            return self.full_allowance()

        record = await self.record_store.read(account_id)
        if record is None:
            return self.full_allowance()

        if record.account_locked_until and record.account_locked_until > now:
            logger.info(
                "Login attempt rejected for locked account",
                account_id=account_id,
                locked_until=record.account_locked_until.isoformat(),
            )
            return self._locked(record.account_locked_until, now)

        attempts = self._attempts_in_window(record, now)
        result = self._allowance(attempts)
        if not result.allowed:
            # Limit reached but the lockout already ran out: hold until the window closes
            return self._locked(record.last_failed_attempt + self._window, now)
        return result

    async def record_failed_login(self, identifier: Optional[str]) -> LoginAttemptResult:
        """
        Record a failed login and lock the account once the limit is reached.

        Lockout doubles for every failure past the limit, starting at
        ``initial_lockout_minutes`` and capped at ``max_lockout_minutes``.
        The read-then-write of the counter is not atomic; concurrent
        failures for one account can lose an increment.

        Args:
            identifier: Raw account identifier

        Returns:
            LoginAttemptResult after the failure; never raises
        """
        try:
            return await self._record_failure(identifier)
        except Exception as e:
            failed_logins_recorded_total.labels(outcome="fail_open").inc()
            return self._fail_open("record_failed_login", e)

    async def _record_failure(self, identifier: Optional[str]) -> LoginAttemptResult:
        now = self.clock()
        account_id = await self._resolve(identifier)
        if account_id is None:
            failed_logins_recorded_total.labels(outcome="unknown_account").inc()
            return self.full_allowance()

        record = await self.record_store.read(account_id) or SecurityRecord()
        attempt_count = self._attempts_in_window(record, now) + 1

        locked_until: Optional[datetime] = None
        lockout_minutes: Optional[int] = None
        if attempt_count >= self.policy.max_failed_attempts:
            exponent = min(
                attempt_count - self.policy.max_failed_attempts,
                self.policy.max_backoff_exponent,
            )
            lockout_minutes = min(
                self.policy.initial_lockout_minutes * 2**exponent,
                self.policy.max_lockout_minutes,
            )
            locked_until = now + timedelta(minutes=lockout_minutes)

        # Never shorten a lockout that is still running
        if record.account_locked_until and record.account_locked_until > now:
            if locked_until is None or record.account_locked_until > locked_until:
                locked_until = record.account_locked_until
                lockout_minutes = _minutes_until(locked_until, now)

        await self.record_store.upsert(
            account_id,
            SecurityRecord(
                failed_attempts=attempt_count,
                last_failed_attempt=now,
                account_locked_until=locked_until,
            ),
        )

        locked = locked_until is not None
        await self.audit.log_security_event(
            account_id,
            SecurityEventType.FAILED_LOGIN,
            {
                "attempt_count": attempt_count,
                "locked": locked,
                "lockout_minutes": lockout_minutes,
            },
        )

        if locked:
            failed_logins_recorded_total.labels(outcome="locked").inc()
            account_lockouts_total.inc()
            logger.warning(
                "Account locked after repeated failed logins",
                account_id=account_id,
                attempt_count=attempt_count,
                lockout_minutes=lockout_minutes,
            )
            return self._locked(locked_until, now)

        failed_logins_recorded_total.labels(outcome="allowed").inc()
        logger.info(
            "Failed login recorded", account_id=account_id, attempt_count=attempt_count
        )
        return self._allowance(attempt_count)

    async def clear_failed_attempts(self, account_id: str) -> bool:
        """
        Reset an account's failure counter after a successful login.

        Args:
            account_id: Account id

        Returns:
            True if the reset was stored, False if storage failed
        """
        try:
            await self.record_store.upsert(account_id, SecurityRecord())
        except Exception as e:
            governor_fail_open_total.labels(operation="clear_failed_attempts").inc()
            logger.error(
                "Failed to clear failed login attempts",
                account_id=account_id,
                error=str(e),
            )
            return False

        await self.audit.log_security_event(
            account_id, SecurityEventType.SUCCESSFUL_LOGIN, {}
        )
        return True
