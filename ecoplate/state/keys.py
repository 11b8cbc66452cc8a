"""Redis key layout."""

DROPS_INDEX = "drops:index"
RESERVATIONS_INDEX = "reservations:index"
STATS_GLOBAL = "stats:global"


def drop_key(drop_id: str) -> str:
    return f"drop:{drop_id}"


def reservation_key(reservation_id: str) -> str:
    return f"res:{reservation_id}"


def session_reservations_key(session_id: str) -> str:
    return f"reservations:session:{session_id}"


def active_reservation_key(session_id: str, drop_id: str) -> str:
    """Marker that exists while the pair holds a reserved reservation."""
    return f"res:active:{session_id}:{drop_id}"


def code_key(code: str) -> str:
    return f"code:{code}"


def user_key(session_id: str) -> str:
    return f"user:{session_id}"


def waitlist_key(drop_id: str, session_id: str) -> str:
    return f"waitlist:{drop_id}:{session_id}"


def waitlist_index_key(drop_id: str) -> str:
    return f"waitlist:index:{drop_id}"


def stats_day_key(label: str) -> str:
    return f"stats:day:{label}"


def stats_location_key(location: str) -> str:
    return f"stats:location:{location}"
