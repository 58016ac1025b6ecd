"""
Dependency functions for the account security service.

Builds the login attempt governor from settings and guards login routes
against locked accounts.
"""

from functools import lru_cache

import structlog
from fastapi import Depends

from .config import settings
from .domain.entities import LockoutPolicy
from .domain.exceptions import AccountLockedException
from .governor import LoginAttemptGovernor, get_lockout_message
from .models import LoginAttemptRequest
from .repositories.memory_repository import (InMemoryAccountLookup,
                                             InMemorySecurityEventSink,
                                             InMemorySecurityRecordStore)

logger = structlog.get_logger(__name__)


def build_governor() -> LoginAttemptGovernor:
    """
    Create a governor wired to Supabase, or to in-memory stores when
    USE_IN_MEMORY_STORE is set.

    Without Supabase credentials the adapters are wired with no client and
    raise InfrastructureError on use, so every decision fails open.
    """
    policy = LockoutPolicy.from_settings(settings)

    if settings.USE_IN_MEMORY_STORE:
        logger.warning("Using in-memory security stores; state is not persisted")
        return LoginAttemptGovernor(
            InMemoryAccountLookup(),
            InMemorySecurityRecordStore(),
            InMemorySecurityEventSink(),
            policy=policy,
        )

    from .repositories.supabase_repository import (SupabaseAccountLookup,
                                                   SupabaseSecurityEventSink,
                                                   SupabaseSecurityRecordStore)
    from .supabase_client import get_supabase_client

    try:
        client = get_supabase_client()
    except ValueError as e:
        logger.error("Supabase client unavailable, login checks will fail open", error=str(e))
        client = None

    return LoginAttemptGovernor(
        SupabaseAccountLookup(client),
        SupabaseSecurityRecordStore(client),
        SupabaseSecurityEventSink(client),
        policy=policy,
    )


@lru_cache(maxsize=1)
def get_governor() -> LoginAttemptGovernor:
    """FastAPI dependency returning the process-wide governor."""
    return build_governor()


async def require_login_allowed(
    payload: LoginAttemptRequest,
    governor: LoginAttemptGovernor = Depends(get_governor),
) -> LoginAttemptRequest:
    """
    Dependency for sign-in routes: rejects attempts against locked accounts.

    Raises:
        AccountLockedException: If the governor denies the attempt
    """
    result = await governor.check_login_attempt(payload.identifier)
    if not result.allowed:
        raise AccountLockedException(
            get_lockout_message(result) or "Too many failed login attempts",
            lockout_minutes=result.lockout_minutes,
        )
    return payload
