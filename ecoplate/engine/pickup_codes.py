"""Pickup code registry: issues single-use codes and redeems them exactly once."""

import re
import secrets
from typing import Awaitable, Callable

from ecoplate.config import Settings, get_settings
from ecoplate.errors import CodeAllocationError
from ecoplate.models.pickup_code import PickupCodeRecord, PickupCodeStatus, RedemptionResult
from ecoplate.state import keys
from ecoplate.state.manager import StateManager, Transaction
from ecoplate.state.workflow import PickupCodeTransitions
from ecoplate.utils.logging import LedgerLogger

REASON_NOT_FOUND = "Code not found"
REASON_ALREADY_REDEEMED = "Already redeemed"
REASON_EXPIRED = "Code expired or cancelled"


class RedemptionInvalid(Exception):
    """A redemption attempt that must be refused with ``reason``."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


PickupHandler = Callable[[Transaction, PickupCodeRecord], Awaitable[RedemptionResult]]


class PickupCodeRegistry:
    """
    Owns PickupCodeRecords.

    Codes are only ever moved forward through ``PickupCodeTransitions``; other
    components go through this registry rather than touching code keys.
    """

    def __init__(self, state: StateManager, settings: Settings | None = None):
        self.state = state
        self.settings = settings or get_settings()
        self.logger = LedgerLogger("pickup_code_registry")

    def generate_code(self) -> str:
        """Random code from the unambiguous alphabet."""
        alphabet = self.settings.pickup_code_alphabet
        return "".join(
            secrets.choice(alphabet) for _ in range(self.settings.pickup_code_length)
        )

    def parse_credential(self, raw: str) -> str | None:
        """
        Extract a code from counter input.

        Accepts a QR payload ``ECOPLATE:<code>:<location>`` or a bare code.
        """
        length = self.settings.pickup_code_length
        parts = raw.strip().split(":")

        prefix = parts[0].upper()
        if prefix == self.settings.qr_prefix and len(parts) > 1 and len(parts[1]) == length:
            return parts[1].upper()

        bare = raw.strip().upper()
        if re.fullmatch(rf"[A-Z0-9]{{{length}}}", bare):
            return bare
        return None

    def qr_payload(self, code: str, location: str) -> str:
        return f"{self.settings.qr_prefix}:{code}:{location}"

    async def allocate(self, tx: Transaction) -> str:
        """Pick a code with no existing record, watching it until commit."""
        for _ in range(self.settings.pickup_code_max_attempts):
            code = self.generate_code()
            key = keys.code_key(code)
            await tx.watch(key)
            if not await tx.exists(key):
                return code

        raise CodeAllocationError("Could not allocate a unique pickup code")

    def issue(
        self,
        tx: Transaction,
        code: str,
        reservation_id: str,
        drop_id: str,
    ) -> PickupCodeRecord:
        record = PickupCodeRecord(code=code, reservation_id=reservation_id, drop_id=drop_id)
        tx.set(keys.code_key(code), record.model_dump(mode="json"))
        return record

    async def read(self, tx: Transaction, code: str) -> PickupCodeRecord | None:
        key = keys.code_key(code)
        await tx.watch(key)
        data = await tx.get(key)
        return PickupCodeRecord(**data) if data else None

    def _transition(
        self,
        tx: Transaction,
        record: PickupCodeRecord,
        to_status: PickupCodeStatus,
    ) -> PickupCodeRecord:
        if not PickupCodeTransitions.can_transition(record.status, to_status):
            raise ValueError(
                f"Pickup code cannot move from {record.status.value} to {to_status.value}"
            )

        updated = record.model_copy(update={"status": to_status})
        tx.set(keys.code_key(record.code), updated.model_dump(mode="json"))
        return updated

    def expire(self, tx: Transaction, record: PickupCodeRecord) -> PickupCodeRecord:
        """Retire a code whose reservation was cancelled or missed."""
        return self._transition(tx, record, PickupCodeStatus.EXPIRED)

    def mark_redeemed(self, tx: Transaction, record: PickupCodeRecord) -> PickupCodeRecord:
        return self._transition(tx, record, PickupCodeStatus.REDEEMED)

    async def get(self, code: str) -> PickupCodeRecord | None:
        data = await self.state.get(keys.code_key(code.upper()))
        return PickupCodeRecord(**data) if data else None

    async def redeem(self, raw_code: str, on_pickup: PickupHandler) -> RedemptionResult:
        """
        Redeem a code at the counter.

        The status check and the flip to ``redeemed`` commit in one transaction
        watching the code, so of two concurrent attempts exactly one succeeds
        and the other re-reads the code as already redeemed.

        Args:
            raw_code: Bare code or QR payload
            on_pickup: Completes the linked reservation inside the same transaction

        Returns:
            A valid result with the reservation, or the reason for refusal
        """
        code = self.parse_credential(raw_code)

        if code is None:
            self.logger.log_redemption(raw_code.strip(), False, REASON_NOT_FOUND)
            return RedemptionResult.rejected(REASON_NOT_FOUND)

        async def _redeem(tx: Transaction) -> RedemptionResult:
            record = await self.read(tx, code)

            if record is None:
                raise RedemptionInvalid(REASON_NOT_FOUND)
            if record.status == PickupCodeStatus.REDEEMED:
                raise RedemptionInvalid(REASON_ALREADY_REDEEMED)
            if record.status == PickupCodeStatus.EXPIRED:
                raise RedemptionInvalid(REASON_EXPIRED)

            return await on_pickup(tx, record)

        try:
            result = await self.state.transaction(_redeem, keys.code_key(code))
        except RedemptionInvalid as e:
            self.logger.log_redemption(code, False, e.reason)
            return RedemptionResult.rejected(e.reason)

        self.logger.log_redemption(code, True, reservation_id=result.reservation.id)
        return result
