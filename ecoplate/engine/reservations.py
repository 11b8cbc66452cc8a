"""Reservation manager: the only writer of Reservation records."""

from uuid import uuid4

from ecoplate.engine.accounts import AccountLedger
from ecoplate.engine.inventory import InventoryStore
from ecoplate.engine.pickup_codes import (
    REASON_ALREADY_REDEEMED,
    REASON_EXPIRED,
    PickupCodeRegistry,
    RedemptionInvalid,
)
from ecoplate.engine.pricing import price_for
from ecoplate.engine.stats import StatsAggregator
from ecoplate.errors import (
    DuplicateActiveReservationError,
    NotActiveError,
    NotFoundError,
    SoldOutError,
    ValidationError,
)
from ecoplate.models.drop import Drop
from ecoplate.models.pickup_code import PickupCodeRecord, RedemptionResult
from ecoplate.models.reservation import (
    BoxStatus,
    CreateReservationRequest,
    PaymentMethod,
    Reservation,
    ReservationConfirmation,
    ReservationStatus,
)
from ecoplate.state import keys
from ecoplate.state.manager import StateManager, Transaction
from ecoplate.state.workflow import ReservationTransitions
from ecoplate.utils.clock import Clock, local_now
from ecoplate.utils.logging import LedgerLogger, get_logger

logger = get_logger(__name__)

REASON_RESERVATION_MISSING = "Reservation not found"


class ReservationManager:
    """
    Orchestrates reserve, cancel, rate, no-show and pickup transitions.

    Each transition runs as one transaction spanning the reservation, its drop,
    its pickup code, the session's account and the stats counters it touches,
    so it either applies completely or not at all.
    """

    def __init__(
        self,
        state: StateManager,
        inventory: InventoryStore,
        accounts: AccountLedger,
        codes: PickupCodeRegistry,
        stats: StatsAggregator,
        clock: Clock = local_now,
    ):
        self.state = state
        self.inventory = inventory
        self.accounts = accounts
        self.codes = codes
        self.stats = stats
        self.clock = clock
        self.logger = LedgerLogger("reservation_manager")

    async def _read(self, tx: Transaction, reservation_id: str) -> Reservation:
        key = keys.reservation_key(reservation_id)
        await tx.watch(key)
        data = await tx.get(key)

        if not data:
            raise NotFoundError(f"Reservation {reservation_id} not found")

        return Reservation(**data)

    def _stage(self, tx: Transaction, reservation: Reservation) -> None:
        tx.set(keys.reservation_key(reservation.id), reservation.model_dump(mode="json"))

    def _ensure_transition(
        self,
        reservation: Reservation,
        to_status: ReservationStatus,
        operation: str,
    ) -> None:
        if not ReservationTransitions.can_transition(reservation.status, to_status):
            self.logger.log_rejected(
                operation,
                "not_active",
                reservation_id=reservation.id,
                status=reservation.status.value,
            )
            raise NotActiveError(reservation.id, reservation.status.value)

    async def create_reservation(
        self,
        request: CreateReservationRequest,
    ) -> ReservationConfirmation:
        """
        Reserve one box of a drop for a session.

        Args:
            request: Drop, session, payment method and optional card digits

        Returns:
            The new reservation and the drop's updated counters

        Raises:
            NotFoundError: Unknown drop
            SoldOutError: No boxes remaining
            DuplicateActiveReservationError: Session already holds this drop
        """
        reservation_id = f"res-{uuid4().hex[:12]}"
        active_key = keys.active_reservation_key(request.session_id, request.drop_id)

        async def _reserve(tx: Transaction) -> ReservationConfirmation:
            drop = await self.inventory.read(tx, request.drop_id)
            await tx.watch(active_key)

            if drop.is_sold_out:
                raise SoldOutError(drop.id)
            if await tx.exists(active_key):
                raise DuplicateActiveReservationError(drop.id, request.session_id)

            account = await self.accounts.read(tx, request.session_id)
            code = await self.codes.allocate(tx)

            # Priced on the drop as the customer saw it, before this box is taken
            current_price = price_for(drop)
            updated_drop = self.inventory.take_box(drop)
            now = self.clock()

            reservation = Reservation(
                id=reservation_id,
                drop_id=drop.id,
                session_id=request.session_id,
                drop_location=drop.location,
                drop_location_detail=drop.location_detail,
                drop_date=drop.date,
                drop_window_start=drop.window_start,
                drop_window_end=drop.window_end,
                drop_image_ref=drop.image_ref,
                pickup_code=code,
                created_at=now,
                payment_method=request.payment_method,
                card_last4=request.card_last4,
                current_price=current_price,
            )

            account_changed = False
            if request.payment_method == PaymentMethod.CREDIT:
                account.debit_credit()
                account_changed = True
            if request.payment_method == PaymentMethod.CARD and request.card_last4:
                account_changed = account.record_card(request.card_last4) or account_changed

            self.inventory.stage(tx, updated_drop)
            self.codes.issue(tx, code, reservation.id, drop.id)
            self._stage(tx, reservation)
            tx.set(active_key, reservation.id)
            tx.zadd(keys.RESERVATIONS_INDEX, {reservation.id: now.timestamp()})
            tx.zadd(
                keys.session_reservations_key(request.session_id),
                {reservation.id: now.timestamp()},
            )
            if account_changed:
                self.accounts.stage(tx, request.session_id, account)
            self.stats.record_reservation(tx)

            return ReservationConfirmation(reservation=reservation, drop=updated_drop)

        try:
            confirmation = await self.state.transaction(_reserve)
        except (SoldOutError, DuplicateActiveReservationError) as e:
            self.logger.log_rejected(
                "create_reservation",
                e.code,
                drop_id=request.drop_id,
                session_id=request.session_id,
            )
            raise

        self.logger.log_transition(
            "reservation",
            confirmation.reservation.id,
            None,
            ReservationStatus.RESERVED.value,
            drop_id=request.drop_id,
            session_id=request.session_id,
            payment_method=request.payment_method.value,
            price=str(confirmation.reservation.current_price),
            remaining=confirmation.drop.remaining_boxes,
        )

        return ReservationConfirmation(
            reservation=confirmation.reservation,
            drop=self.inventory.with_status(confirmation.drop),
        )

    async def cancel_reservation(self, reservation_id: str) -> Reservation:
        """
        Cancel an active reservation.

        The box goes back on sale, the code is expired, and a credit is refunded
        if the reservation was paid with one.
        """

        async def _cancel(tx: Transaction) -> Reservation:
            reservation = await self._read(tx, reservation_id)
            self._ensure_transition(reservation, ReservationStatus.CANCELLED, "cancel")

            drop = await self.inventory.read(tx, reservation.drop_id)
            record = await self.codes.read(tx, reservation.pickup_code)
            account = None
            if reservation.payment_method == PaymentMethod.CREDIT:
                account = await self.accounts.read(tx, reservation.session_id)

            cancelled = reservation.model_copy(
                update={"status": ReservationStatus.CANCELLED, "cancelled_at": self.clock()}
            )

            self.inventory.stage(tx, self.inventory.return_box(drop))
            if record is not None:
                self.codes.expire(tx, record)
            if account is not None:
                account.credit_back()
                self.accounts.stage(tx, reservation.session_id, account)
            self._stage(tx, cancelled)
            tx.delete(keys.active_reservation_key(reservation.session_id, reservation.drop_id))

            return cancelled

        cancelled = await self.state.transaction(_cancel)

        self.logger.log_transition(
            "reservation",
            cancelled.id,
            ReservationStatus.RESERVED.value,
            cancelled.status.value,
            drop_id=cancelled.drop_id,
            refunded_credit=cancelled.payment_method == PaymentMethod.CREDIT,
        )
        return cancelled

    async def rate_reservation(
        self,
        reservation_id: str,
        session_id: str,
        rating: int,
    ) -> Reservation:
        """
        Attach a 1-5 rating and fold it into the site average.

        Also counts a pickup for ``session_id``.
        """
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        async def _rate(tx: Transaction) -> tuple[Reservation, float]:
            reservation = await self._read(tx, reservation_id)
            account = await self.accounts.read(tx, session_id)
            previous_avg, previous_count = await self.stats.read_rating_state(tx)

            rated = reservation.model_copy(update={"rating": rating, "rated_at": self.clock()})

            account.record_pickup()
            self.accounts.stage(tx, session_id, account)
            avg = self.stats.record_rating(tx, rating, previous_avg, previous_count)
            self._stage(tx, rated)

            return rated, avg

        rated, avg = await self.state.transaction(_rate)

        logger.info(
            "reservation_rated",
            reservation_id=rated.id,
            rating=rating,
            avg_rating=avg,
        )
        return rated

    async def mark_no_show(
        self,
        reservation_id: str,
        box_status: BoxStatus = BoxStatus.RELEASED,
    ) -> Reservation:
        """
        Record that a reservation was never picked up.

        The box is not returned to the drop; ``box_status`` records what
        happened to it.
        """

        async def _no_show(tx: Transaction) -> Reservation:
            reservation = await self._read(tx, reservation_id)
            self._ensure_transition(reservation, ReservationStatus.NO_SHOW, "mark_no_show")

            record = await self.codes.read(tx, reservation.pickup_code)
            account = await self.accounts.read(tx, reservation.session_id)

            missed = reservation.model_copy(
                update={
                    "status": ReservationStatus.NO_SHOW,
                    "box_status": box_status,
                    "no_show_at": self.clock(),
                }
            )

            if record is not None:
                self.codes.expire(tx, record)
            account.record_no_show()
            self.accounts.stage(tx, reservation.session_id, account)
            self.stats.record_no_show(tx, reservation)
            self._stage(tx, missed)
            tx.delete(keys.active_reservation_key(reservation.session_id, reservation.drop_id))

            return missed

        missed = await self.state.transaction(_no_show)

        self.logger.log_transition(
            "reservation",
            missed.id,
            ReservationStatus.RESERVED.value,
            missed.status.value,
            box_status=box_status.value,
        )
        return missed

    async def redeem(self, raw_code: str) -> RedemptionResult:
        """Redeem a pickup code or QR payload at the counter."""
        return await self.codes.redeem(raw_code, self._complete_pickup)

    async def _complete_pickup(
        self,
        tx: Transaction,
        record: PickupCodeRecord,
    ) -> RedemptionResult:
        key = keys.reservation_key(record.reservation_id)
        await tx.watch(key)
        data = await tx.get(key)

        if not data:
            raise RedemptionInvalid(REASON_RESERVATION_MISSING)

        reservation = Reservation(**data)
        if reservation.status != ReservationStatus.RESERVED:
            if reservation.status == ReservationStatus.PICKED_UP:
                raise RedemptionInvalid(REASON_ALREADY_REDEEMED)
            raise RedemptionInvalid(REASON_EXPIRED)

        account = await self.accounts.read(tx, reservation.session_id)
        drop_data = await tx.get(keys.drop_key(reservation.drop_id))
        drop = self.inventory.with_status(Drop(**drop_data)) if drop_data else None

        picked_up = reservation.model_copy(
            update={"status": ReservationStatus.PICKED_UP, "picked_up_at": self.clock()}
        )

        self.codes.mark_redeemed(tx, record)
        self._stage(tx, picked_up)
        tx.delete(keys.active_reservation_key(reservation.session_id, reservation.drop_id))
        account.record_pickup()
        self.accounts.stage(tx, reservation.session_id, account)
        self.stats.record_pickup(tx, reservation)

        return RedemptionResult(
            valid=True,
            reservation=picked_up,
            drop=drop,
            location=reservation.drop_location,
        )

    async def get_reservation(self, reservation_id: str) -> Reservation:
        """Get a reservation by ID."""
        data = await self.state.get(keys.reservation_key(reservation_id))

        if not data:
            raise NotFoundError(f"Reservation {reservation_id} not found")

        return Reservation(**data)

    async def list_reservations(self, session_id: str | None = None) -> list[Reservation]:
        """Reservations, newest first, optionally for one session."""
        index = (
            keys.session_reservations_key(session_id) if session_id else keys.RESERVATIONS_INDEX
        )
        reservation_ids = await self.state.zrange(index, desc=True)
        records = await self.state.mget(
            [keys.reservation_key(reservation_id) for reservation_id in reservation_ids]
        )
        return [Reservation(**data) for data in records if data]
