import enum
from datetime import datetime, timedelta
from typing import Optional
from apikey_service.core.timeutils import as_utc, utcnow

DEFAULT_ONLINE_WINDOW = timedelta(days=30)


class KeyStatus(str, enum.Enum):
    """Presentation status of an API key."""
    ONLINE = "online"
    OFFLINE = "offline"


def evaluate_status(
    is_active: bool,
    last_used_at: Optional[datetime],
    created_at: Optional[datetime],
    now: Optional[datetime] = None,
    window: timedelta = DEFAULT_ONLINE_WINDOW
) -> KeyStatus:
    """
    Derive whether a key should be shown online or offline.

    A key is online when it is active and was used (or, if never used,
    created) within ``window`` of ``now``. Recomputed on every read,
    never persisted.
    """
    if not is_active:
        return KeyStatus.OFFLINE

    reference = as_utc(last_used_at) or as_utc(created_at)
    if reference is None:
        return KeyStatus.OFFLINE

    now = as_utc(now) if now is not None else utcnow()
    if now - reference > window:
        return KeyStatus.OFFLINE
    return KeyStatus.ONLINE
