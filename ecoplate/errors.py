"""
Domain errors raised by the engine.

Each error carries the HTTP status and stable code the API reports, so routes
stay thin and a single exception handler can translate them.
"""

from fastapi import status


class EcoPlateError(Exception):
    """Base class for all engine errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EcoPlateError):
    """Malformed or out-of-range input, rejected before any state change."""

    status_code = 422
    code = "validation_error"


class NotFoundError(EcoPlateError):
    """Unknown drop, reservation or code."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(EcoPlateError):
    """A business rule refused the operation."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class SoldOutError(ConflictError):
    code = "sold_out"

    def __init__(self, drop_id: str):
        super().__init__("Drop is sold out - someone grabbed the last box")
        self.drop_id = drop_id


class DuplicateActiveReservationError(ConflictError):
    code = "duplicate_active_reservation"

    def __init__(self, drop_id: str, session_id: str):
        super().__init__("Already have an active reservation for this drop")
        self.drop_id = drop_id
        self.session_id = session_id


class NotActiveError(ConflictError):
    code = "not_active"

    def __init__(self, reservation_id: str, current_status: str):
        super().__init__(f"Reservation is not active (status: {current_status})")
        self.reservation_id = reservation_id
        self.current_status = current_status


class CodeAllocationError(EcoPlateError):
    """No free pickup code could be found."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "code_allocation_failed"
