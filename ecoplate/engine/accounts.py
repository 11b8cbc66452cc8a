"""Account ledger: per-session credits, card-on-file and pickup history."""

from typing import Callable

from ecoplate.models.account import UserAccount, UserAccountUpdate
from ecoplate.state import keys
from ecoplate.state.manager import StateManager, Transaction
from ecoplate.utils.logging import get_logger

logger = get_logger(__name__)


class AccountLedger:
    """Keyed account state. Every mutation is serialized per session."""

    def __init__(self, state: StateManager):
        self.state = state

    async def read(self, tx: Transaction, session_id: str) -> UserAccount:
        """Load an account inside a transaction; unseen sessions get defaults."""
        key = keys.user_key(session_id)
        await tx.watch(key)
        data = await tx.get(key)
        return UserAccount(**data) if data else UserAccount()

    def stage(self, tx: Transaction, session_id: str, account: UserAccount) -> None:
        tx.set(keys.user_key(session_id), account.model_dump(mode="json"))

    async def _mutate(
        self,
        session_id: str,
        change: Callable[[UserAccount], object],
    ) -> UserAccount:
        async def _apply(tx: Transaction) -> UserAccount:
            account = await self.read(tx, session_id)
            change(account)
            self.stage(tx, session_id, account)
            return account

        return await self.state.transaction(_apply, keys.user_key(session_id))

    async def get_user(self, session_id: str) -> UserAccount:
        """Get the account for a session."""
        data = await self.state.get(keys.user_key(session_id))
        return UserAccount(**data) if data else UserAccount()

    async def update_user(self, session_id: str, update: UserAccountUpdate) -> UserAccount:
        """Merge a partial update over the stored account."""
        # Only membership can be cleared with an explicit null
        changes = {
            field: value
            for field, value in update.model_dump(exclude_unset=True).items()
            if value is not None or field == "membership"
        }

        async def _update(tx: Transaction) -> UserAccount:
            account = await self.read(tx, session_id)
            merged = UserAccount(**{**account.model_dump(), **changes})
            self.stage(tx, session_id, merged)
            return merged

        account = await self.state.transaction(_update, keys.user_key(session_id))
        logger.info("user_updated", session_id=session_id, fields=sorted(changes))
        return account

    async def debit_credit(self, session_id: str) -> UserAccount:
        """Spend one credit; a session with none stays at zero."""
        return await self._mutate(session_id, UserAccount.debit_credit)

    async def credit_back(self, session_id: str) -> UserAccount:
        """Refund one credit."""
        return await self._mutate(session_id, UserAccount.credit_back)

    async def record_card(self, session_id: str, last4: str) -> UserAccount:
        """Save a card unless one is already on file."""
        return await self._mutate(session_id, lambda account: account.record_card(last4))
