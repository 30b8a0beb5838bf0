"""Lease port — abstract interface for the batch's mutual-exclusion lease.

A lease is a lock with a time-to-live: a holder that crashes stops
blocking others once the TTL has passed.
"""

from __future__ import annotations

from typing import Protocol


class LeaseError(Exception):
    """Raised when the lease backend cannot be read or written."""


class LeasePort(Protocol):
    """Abstract lease interface used by the batch orchestrator."""

    def acquire(self) -> bool: ...

    def renew(self) -> None: ...

    def release(self) -> None: ...
