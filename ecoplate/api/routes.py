"""API routes for the reservation engine."""

from fastapi import APIRouter, Depends, status

from ecoplate.engine import Engine, build_engine
from ecoplate.models.account import UserAccount, UserAccountUpdate
from ecoplate.models.drop import CreateDropRequest, Drop, Location
from ecoplate.models.pickup_code import RedeemRequest, RedemptionResult
from ecoplate.models.reservation import (
    CreateReservationRequest,
    NoShowEntry,
    NoShowRequest,
    RateRequest,
    Reservation,
    ReservationConfirmation,
)
from ecoplate.models.stats import LocationCap, LocationCapUpdate, StatsSnapshot
from ecoplate.models.waitlist import WaitlistEntry, WaitlistRequest, WaitlistResult
from ecoplate.state.manager import get_state_manager
from ecoplate.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


# Dependency to get the engine


async def get_engine() -> Engine:
    """Get engine components over the shared state manager."""
    state_manager = await get_state_manager()
    return build_engine(state_manager)


# Drop endpoints


@router.get("/drops", response_model=list[Drop])
async def list_drops(engine: Engine = Depends(get_engine)) -> list[Drop]:
    """List all drops, newest first, with their current status."""
    return await engine.inventory.list_drops()


@router.post("/drops", response_model=Drop, status_code=status.HTTP_201_CREATED)
async def create_drop(
    request: CreateDropRequest,
    engine: Engine = Depends(get_engine),
) -> Drop:
    """Post a new drop."""
    return await engine.inventory.create_drop(request)


@router.get("/drops/{drop_id}", response_model=Drop)
async def get_drop(drop_id: str, engine: Engine = Depends(get_engine)) -> Drop:
    """Get a single drop."""
    return await engine.inventory.get_drop(drop_id)


@router.get("/drops/{drop_id}/waitlist", response_model=list[WaitlistEntry])
async def list_waitlist(
    drop_id: str,
    engine: Engine = Depends(get_engine),
) -> list[WaitlistEntry]:
    """List sessions waiting on a drop."""
    return await engine.waitlist.list_entries(drop_id)


# Reservation endpoints


@router.post(
    "/reservations",
    response_model=ReservationConfirmation,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    request: CreateReservationRequest,
    engine: Engine = Depends(get_engine),
) -> ReservationConfirmation:
    """
    Reserve one box of a drop.

    Returns the reservation with its pickup code and the drop's new counters.
    """
    return await engine.reservations.create_reservation(request)


@router.get("/reservations", response_model=list[Reservation])
async def list_reservations(
    session_id: str | None = None,
    engine: Engine = Depends(get_engine),
) -> list[Reservation]:
    """List reservations, optionally for one session."""
    return await engine.reservations.list_reservations(session_id)


@router.get("/reservations/{reservation_id}", response_model=Reservation)
async def get_reservation(
    reservation_id: str,
    engine: Engine = Depends(get_engine),
) -> Reservation:
    """Get a single reservation."""
    return await engine.reservations.get_reservation(reservation_id)


@router.post("/reservations/{reservation_id}/cancel", response_model=Reservation)
async def cancel_reservation(
    reservation_id: str,
    engine: Engine = Depends(get_engine),
) -> Reservation:
    """Cancel an active reservation and release its box."""
    return await engine.reservations.cancel_reservation(reservation_id)


@router.post("/reservations/{reservation_id}/rate", response_model=Reservation)
async def rate_reservation(
    reservation_id: str,
    request: RateRequest,
    engine: Engine = Depends(get_engine),
) -> Reservation:
    """Rate a pickup."""
    return await engine.reservations.rate_reservation(
        reservation_id, request.session_id, request.rating
    )


@router.post("/reservations/{reservation_id}/no-show", response_model=Reservation)
async def mark_no_show(
    reservation_id: str,
    request: NoShowRequest = NoShowRequest(),
    engine: Engine = Depends(get_engine),
) -> Reservation:
    """Mark a reservation as a no-show and record the box's disposition."""
    return await engine.reservations.mark_no_show(reservation_id, request.box_status)


# Counter endpoints


@router.post("/redeem", response_model=RedemptionResult)
async def redeem(
    request: RedeemRequest,
    engine: Engine = Depends(get_engine),
) -> RedemptionResult:
    """
    Redeem a pickup code or scanned QR payload.

    Refusals are returned as ``valid: false`` with the reason for the operator.
    """
    return await engine.reservations.redeem(request.code)


@router.post("/waitlist", response_model=WaitlistResult)
async def join_waitlist(
    request: WaitlistRequest,
    engine: Engine = Depends(get_engine),
) -> WaitlistResult:
    """Join the waitlist for a sold-out drop."""
    return await engine.waitlist.join(request.drop_id, request.session_id)


@router.get("/no-shows", response_model=list[NoShowEntry])
async def list_no_shows(engine: Engine = Depends(get_engine)) -> list[NoShowEntry]:
    """Reservations whose window has passed without a pickup."""
    return await engine.no_shows.list_no_shows()


# User endpoints


@router.get("/users/{session_id}", response_model=UserAccount)
async def get_user(session_id: str, engine: Engine = Depends(get_engine)) -> UserAccount:
    """Get a session's account."""
    return await engine.accounts.get_user(session_id)


@router.put("/users/{session_id}", response_model=UserAccount)
async def update_user(
    session_id: str,
    request: UserAccountUpdate,
    engine: Engine = Depends(get_engine),
) -> UserAccount:
    """Apply a partial update to a session's account."""
    return await engine.accounts.update_user(session_id, request)


# Admin endpoints


@router.get("/admin/stats", response_model=StatsSnapshot)
async def get_admin_stats(engine: Engine = Depends(get_engine)) -> StatsSnapshot:
    """Site-wide pickup, no-show and rating statistics."""
    return await engine.stats.snapshot()


@router.put("/admin/location-caps/{location}", response_model=LocationCap)
async def update_location_cap(
    location: Location,
    request: LocationCapUpdate,
    engine: Engine = Depends(get_engine),
) -> LocationCap:
    """Update a location's cap inputs."""
    cap = await engine.stats.update_location_cap(location, request)
    logger.info("location_cap_update_requested", location=location.value)
    return cap
