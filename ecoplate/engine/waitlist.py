"""Waitlist registry for sold-out drops."""

from uuid import uuid4

from ecoplate.errors import NotFoundError
from ecoplate.models.waitlist import WaitlistEntry, WaitlistResult
from ecoplate.state import keys
from ecoplate.state.manager import StateManager, Transaction
from ecoplate.utils.clock import Clock, local_now
from ecoplate.utils.logging import get_logger

logger = get_logger(__name__)


class WaitlistRegistry:
    """Append-only interest list, at most one entry per (drop, session)."""

    def __init__(self, state: StateManager, clock: Clock = local_now):
        self.state = state
        self.clock = clock

    async def join(self, drop_id: str, session_id: str) -> WaitlistResult:
        """
        Add a session to a drop's waitlist.

        Joining twice is harmless: the second call reports the existing entry.
        """
        now = self.clock()
        entry = WaitlistEntry(
            id=f"wl-{uuid4().hex[:12]}",
            drop_id=drop_id,
            session_id=session_id,
            created_at=now,
        )

        key = keys.waitlist_key(drop_id, session_id)

        async def _join(tx: Transaction) -> bool:
            if await tx.exists(key):
                return False
            tx.set(key, entry.model_dump(mode="json"))
            tx.zadd(keys.waitlist_index_key(drop_id), {session_id: now.timestamp()})
            return True

        if not await self.state.transaction(_join, key):
            logger.debug("waitlist_already_joined", drop_id=drop_id, session_id=session_id)
            return WaitlistResult(already_on_waitlist=True)

        logger.info("waitlist_joined", drop_id=drop_id, session_id=session_id)
        return WaitlistResult(success=True)

    async def list_entries(self, drop_id: str) -> list[WaitlistEntry]:
        """Entries for a drop in join order."""
        session_ids = await self.state.zrange(keys.waitlist_index_key(drop_id))
        records = await self.state.mget(
            [keys.waitlist_key(drop_id, session_id) for session_id in session_ids]
        )
        return [WaitlistEntry(**data) for data in records if data]

    async def mark_notified(self, drop_id: str, session_id: str) -> WaitlistEntry:
        """Flag an entry once the notification pipeline has reached it."""
        key = keys.waitlist_key(drop_id, session_id)

        async def _mark(tx: Transaction) -> WaitlistEntry:
            data = await tx.get(key)
            if not data:
                raise NotFoundError(f"No waitlist entry for session on drop {drop_id}")

            entry = WaitlistEntry(**data).model_copy(update={"notified": True})
            tx.set(key, entry.model_dump(mode="json"))
            return entry

        return await self.state.transaction(_mark, key)
