"""No-show detection: a read-only view over reservations whose window has passed."""

from ecoplate.config import Settings, get_settings
from ecoplate.engine.accounts import AccountLedger
from ecoplate.engine.inventory import InventoryStore
from ecoplate.engine.reservations import ReservationManager
from ecoplate.errors import NotFoundError
from ecoplate.models.drop import Drop
from ecoplate.models.reservation import BoxStatus, NoShowEntry, ReservationStatus
from ecoplate.utils.clock import Clock, format_time, local_now


class NoShowDetector:
    """
    Surfaces no-show candidates for operators.

    Nothing here changes state: a candidate only becomes a no-show when an
    operator calls ``ReservationManager.mark_no_show``.
    """

    def __init__(
        self,
        reservations: ReservationManager,
        inventory: InventoryStore,
        accounts: AccountLedger,
        clock: Clock = local_now,
        settings: Settings | None = None,
    ):
        self.reservations = reservations
        self.inventory = inventory
        self.accounts = accounts
        self.clock = clock
        self.settings = settings or get_settings()

    async def list_no_shows(self) -> list[NoShowEntry]:
        """
        Reservations still reserved after their window ended, plus ones already marked.

        Returns:
            Entries in reservation order, newest first
        """
        now = self.clock()
        drops: dict[str, Drop | None] = {}
        entries = []

        for reservation in await self.reservations.list_reservations():
            if reservation.status not in (ReservationStatus.RESERVED, ReservationStatus.NO_SHOW):
                continue

            if reservation.drop_id not in drops:
                try:
                    drops[reservation.drop_id] = await self.inventory.get_drop(reservation.drop_id)
                except NotFoundError:
                    drops[reservation.drop_id] = None

            drop = drops[reservation.drop_id]
            if drop is None:
                continue

            already_marked = reservation.status == ReservationStatus.NO_SHOW
            if not (already_marked or drop.window_ended(now)):
                continue

            account = await self.accounts.get_user(reservation.session_id)
            box_status = reservation.box_status
            if box_status is None and already_marked:
                box_status = BoxStatus.RELEASED

            entries.append(
                NoShowEntry(
                    reservation_id=reservation.id,
                    session_id=reservation.session_id,
                    code=reservation.pickup_code,
                    location=drop.location,
                    time=format_time(drop.window_end),
                    repeat_offender=(
                        account.no_show_count >= self.settings.repeat_offender_threshold
                    ),
                    box_status=box_status,
                    already_marked=already_marked,
                )
            )

        return entries
