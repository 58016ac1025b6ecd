"""
Login attempt endpoints for API v1.

Exposes the login attempt governor to the authentication flow: check before
verifying credentials, record a failure after a bad password, clear after a
successful sign-in.
"""

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_governor, require_login_allowed
from ..governor import LoginAttemptGovernor, get_lockout_message
from ..models import (ClearAttemptsRequest, LoginAttemptRequest,
                      LoginAttemptResponse)

router = APIRouter(prefix="/api/v1/login-attempts", tags=["Login Attempts"])


@router.post(
    "/check",
    response_model=LoginAttemptResponse,
    summary="Check whether a login attempt may proceed",
)
async def check_login_attempt(
    payload: LoginAttemptRequest,
    governor: LoginAttemptGovernor = Depends(get_governor),
):
    """
    Check the lockout state for an identifier.

    Unknown identifiers get the same response as accounts without failures.
    """
    result = await governor.check_login_attempt(payload.identifier)
    return LoginAttemptResponse.from_result(result, get_lockout_message(result))


@router.post(
    "/failed",
    response_model=LoginAttemptResponse,
    summary="Record a failed login",
)
async def record_failed_login(
    payload: LoginAttemptRequest,
    governor: LoginAttemptGovernor = Depends(get_governor),
):
    """Record a failed login and return the resulting lockout state."""
    result = await governor.record_failed_login(payload.identifier)
    return LoginAttemptResponse.from_result(result, get_lockout_message(result))


@router.post(
    "/clear",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear failed logins after a successful sign-in",
)
async def clear_failed_attempts(
    payload: ClearAttemptsRequest,
    governor: LoginAttemptGovernor = Depends(get_governor),
):
    await governor.clear_failed_attempts(payload.account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/authorize",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reject the attempt if the account is locked",
)
async def authorize_login_attempt(
    payload: LoginAttemptRequest = Depends(require_login_allowed),
):
    return Response(status_code=status.HTTP_204_NO_CONTENT)
