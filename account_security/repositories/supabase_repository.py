"""
Supabase-backed collaborator implementations.

Account lookup reads the profile table, security records live in the
``user_security`` table (one row per ``user_id``) and security events are
written through the ``log_security_event`` database function. Every
PostgREST or transport failure is wrapped in InfrastructureError so the
governor can fail open.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import Client as SupabaseClient

from ..config import settings
from ..domain.entities import SecurityRecord
from ..domain.exceptions import InfrastructureError
from .base import IAccountLookup, ISecurityEventSink, ISecurityRecordStore

logger = structlog.get_logger(__name__)

SUPABASE_ERRORS = (APIError, httpx.HTTPError)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp column into an aware UTC datetime.

    Args:
        value: ISO-8601 string, datetime or None

    Returns:
        Aware datetime or None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _require_client(
    client: Optional[SupabaseClient], service: str
) -> SupabaseClient:
    """Return the client, or raise InfrastructureError when Supabase is not configured."""
    if client is None:
        raise InfrastructureError(service, "Supabase not configured")
    return client


class SupabaseAccountLookup(IAccountLookup):
    """Resolves identifiers against the account profile table."""

    def __init__(
        self,
        client: Optional[SupabaseClient],
        table: str = settings.ACCOUNT_TABLE,
        identifier_column: str = settings.ACCOUNT_IDENTIFIER_COLUMN,
    ):
        self.client = client
        self.table = table
        self.identifier_column = identifier_column

    async def resolve(self, normalized_identifier: str) -> Optional[str]:
        client = _require_client(self.client, "account_lookup")
        try:
            result = (
                client.table(self.table)
                .select("id")
                .eq(self.identifier_column, normalized_identifier)
                .limit(1)
                .execute()
            )
        except SUPABASE_ERRORS as e:
            raise InfrastructureError("account_lookup", e) from e

        if not result.data:
            return None
        return str(result.data[0]["id"])


class SupabaseSecurityRecordStore(ISecurityRecordStore):
    """Reads and upserts rows of the security table keyed by user_id."""

    def __init__(
        self, client: Optional[SupabaseClient], table: str = settings.SECURITY_TABLE
    ):
        self.client = client
        self.table = table

    async def read(self, account_id: str) -> Optional[SecurityRecord]:
        client = _require_client(self.client, "security_record_store")
        try:
            result = (
                client.table(self.table)
                .select("failed_login_attempts, last_failed_attempt, account_locked_until")
                .eq("user_id", account_id)
                .limit(1)
                .execute()
            )
        except SUPABASE_ERRORS as e:
            raise InfrastructureError("security_record_store", e) from e

        if not result.data:
            return None

        row = result.data[0]
        try:
            return SecurityRecord(
                failed_attempts=int(row.get("failed_login_attempts") or 0),
                last_failed_attempt=parse_timestamp(row.get("last_failed_attempt")),
                account_locked_until=parse_timestamp(row.get("account_locked_until")),
            )
        except (TypeError, ValueError) as e:
            raise InfrastructureError("security_record_store", f"malformed row: {e}") from e

    async def upsert(self, account_id: str, record: SecurityRecord) -> None:
        row = {
            "user_id": account_id,
            "failed_login_attempts": record.failed_attempts,
            "last_failed_attempt": format_timestamp(record.last_failed_attempt),
            "account_locked_until": format_timestamp(record.account_locked_until),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        client = _require_client(self.client, "security_record_store")
        try:
            client.table(self.table).upsert(row, on_conflict="user_id").execute()
        except SUPABASE_ERRORS as e:
            raise InfrastructureError("security_record_store", e) from e


class SupabaseSecurityEventSink(ISecurityEventSink):
    """Emits security events through a database function."""

    def __init__(
        self,
        client: Optional[SupabaseClient],
        rpc_name: str = settings.SECURITY_EVENT_RPC,
    ):
        self.client = client
        self.rpc_name = rpc_name

    async def emit(
        self, account_id: str, event_type: str, details: Dict[str, Any]
    ) -> None:
        client = _require_client(self.client, "security_event_sink")
        try:
            client.rpc(
                self.rpc_name,
                {
                    "p_user_id": account_id,
                    "p_event_type": event_type,
                    "p_details": details,
                },
            ).execute()
        except SUPABASE_ERRORS as e:
            raise InfrastructureError("security_event_sink", e) from e
