"""
In-memory collaborator implementations.

Dictionary-backed account lookup, security record store and event sink for
local development and tests. State lives for the lifetime of the instance.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ..domain.entities import SecurityRecord
from .base import IAccountLookup, ISecurityEventSink, ISecurityRecordStore

logger = structlog.get_logger(__name__)


class InMemoryAccountLookup(IAccountLookup):
    """
    Account lookup over a fixed identifier to account id mapping.

    Identifiers are stored case-folded so lookups match the governor's
    normalization.
    """

    def __init__(self, accounts: Optional[Dict[str, str]] = None):
        self.accounts: Dict[str, str] = {}
        for identifier, account_id in (accounts or {}).items():
            self.add(identifier, account_id)

    def add(self, identifier: str, account_id: str) -> None:
        self.accounts[identifier.strip().casefold()] = account_id

    async def resolve(self, normalized_identifier: str) -> Optional[str]:
        return self.accounts.get(normalized_identifier)


class InMemorySecurityRecordStore(ISecurityRecordStore):
    """Security records keyed by account id; reads return copies."""

    def __init__(self):
        self.records: Dict[str, SecurityRecord] = {}

    async def read(self, account_id: str) -> Optional[SecurityRecord]:
        record = self.records.get(account_id)
        return replace(record) if record is not None else None

    async def upsert(self, account_id: str, record: SecurityRecord) -> None:
        self.records[account_id] = replace(record)
        logger.debug(
            "Security record stored",
            account_id=account_id,
            failed_attempts=record.failed_attempts,
        )


class InMemorySecurityEventSink(ISecurityEventSink):
    """Collects emitted events in a list."""

    def __init__(self):
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []

    async def emit(
        self, account_id: str, event_type: str, details: Dict[str, Any]
    ) -> None:
        self.events.append((account_id, event_type, dict(details)))

    def events_of_type(self, event_type: str) -> List[Tuple[str, str, Dict[str, Any]]]:
        return [event for event in self.events if event[1] == event_type]
