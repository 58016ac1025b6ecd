"""
Collaborator interfaces (Abstract Base Classes) for the login attempt governor.

Defines the contract for account lookup, security record persistence and
security event emission independent of the underlying storage mechanism.
The governor owns no caching or invalidation behaviour; implementations
decide that.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..domain.entities import SecurityRecord


class IAccountLookup(ABC):
    """Resolves a normalized account identifier to an account id."""

    @abstractmethod
    async def resolve(self, normalized_identifier: str) -> Optional[str]:
        """
        Find the account for an identifier.

        Args:
            normalized_identifier: Trimmed, case-folded identifier (e.g. email)

        Returns:
            Account id if found, None otherwise
        """
        pass


class ISecurityRecordStore(ABC):
    """Persists one SecurityRecord per account."""

    @abstractmethod
    async def read(self, account_id: str) -> Optional[SecurityRecord]:
        """
        Load the security record for an account.

        Args:
            account_id: Account id

        Returns:
            SecurityRecord if one exists, None otherwise
        """
        pass

    @abstractmethod
    async def upsert(self, account_id: str, record: SecurityRecord) -> None:
        """
        Create or replace the security record for an account.

        Args:
            account_id: Account id (unique key)
            record: Record to persist
        """
        pass


class ISecurityEventSink(ABC):
    """Receives security audit events."""

    @abstractmethod
    async def emit(
        self, account_id: str, event_type: str, details: Dict[str, Any]
    ) -> None:
        """
        Record a security event.

        Args:
            account_id: Account the event concerns
            event_type: Event identifier (see SecurityEventType)
            details: Event payload
        """
        pass
