"""Account lockout tracking for repeated failed logins.

Failures are counted per (username, client address) pair. Redis keeps the
count consistent across gateway instances when it is reachable; the local
backend keeps login usable when it is not. Availability of login wins over
perfect global synchronization of the counter:

- ``is_locked``: a Redis lock short-circuits to True, otherwise local state
  decides.
- ``record_failure``: if Redis did not just lock the pair (unreachable or
  below threshold) the failure is also counted locally.
- ``clear_failures``: drops both counters; an existing Redis lock is kept, so
  a correct password does not lift a lockout early.
"""

from __future__ import annotations

import logging

from app.adapters.lockout.base import AbstractLockoutBackend
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def lockout_key(username: str, address: str) -> str:
    return f"{username.lower()}::{address}"


class LockoutTracker:
    def __init__(
        self,
        *,
        shared: AbstractLockoutBackend,
        local: AbstractLockoutBackend,
    ) -> None:
        self.shared = shared
        self.local = local

    async def is_locked(self, username: str, address: str) -> bool:
        key = lockout_key(username, address)
        if await self.shared.is_locked(key):
            return True
        return await self.local.is_locked(key)

    async def record_failure(self, username: str, address: str) -> bool:
        """Count a failed login; returns True when the pair is now locked."""
        key = lockout_key(username, address)
        locked = await self.shared.record_failure(key)
        if not locked:
            locked = await self.local.record_failure(key)

        if locked:
            logger.warning("lockout.locked", extra={"lockout_key_hash": hash_identifier(key)})
        return locked

    async def clear_failures(self, username: str, address: str) -> None:
        key = lockout_key(username, address)
        await self.shared.clear(key)
        await self.local.clear(key)
