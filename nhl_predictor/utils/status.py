"""
Status normalization for ESPN game payloads.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

SCHEDULED = "SCHEDULED"
LIVE = "LIVE"
FINAL = "FINAL"
POSTPONED = "POSTPONED"


def normalize_status(status: Optional[Dict[str, Any]]) -> str:
    """Collapse an ESPN status block into SCHEDULED, LIVE, FINAL or POSTPONED."""
    if not status:
        return SCHEDULED

    if is_completed_status(status):
        return FINAL

    state = str(status.get("state") or "").lower()
    description = str(status.get("description") or "").lower()

    if any(x in description for x in ['postponed', 'canceled', 'cancelled', 'suspended']):
        return POSTPONED
    if state == "in":
        return LIVE
    # Between periods is still live
    if any(x in description for x in ['in progress', 'end of', 'intermission', 'overtime', 'shootout']):
        return LIVE

    return SCHEDULED


def is_completed_status(status: Optional[Dict[str, Any]]) -> bool:
    """
    True when any completion signal is present.

    The scoreboard does not set these consistently: some finished games only
    carry completed=True, some only state="post", some only a "Final" or
    "Final/OT" description. All three are checked.
    """
    if not status:
        return False

    if status.get("completed") is True:
        return True
    if str(status.get("state") or "").lower() == "post":
        return True
    if "final" in str(status.get("description") or "").lower():
        return True

    return False


def add_time_display(game_date_str: str) -> Optional[str]:
    """Convert game date to EST display format."""
    if not game_date_str:
        return None
    try:
        dt = datetime.fromisoformat(game_date_str.replace("Z", "+00:00"))
        est_dt = dt - timedelta(hours=5)
        return est_dt.strftime("%a, %b %d at %I:%M %p") + " EST"
    except ValueError:
        return None
