"""
Repository layer - Collaborator abstractions for the login attempt governor.

This layer provides interfaces for account lookup, security record
persistence and security event emission, hiding implementation details
from the governor.
"""

from .base import IAccountLookup, ISecurityEventSink, ISecurityRecordStore
from .memory_repository import (InMemoryAccountLookup,
                                InMemorySecurityEventSink,
                                InMemorySecurityRecordStore)

__all__ = [
    "IAccountLookup",
    "ISecurityEventSink",
    "ISecurityRecordStore",
    "InMemoryAccountLookup",
    "InMemorySecurityEventSink",
    "InMemorySecurityRecordStore",
]
