"""
Debug API – recent host logs for troubleshooting plugin authorization.
"""

from fastapi import APIRouter

router = APIRouter()


@router.get("/recent-logs")
def recent_logs():
    """Return recent host logs (gate outcomes, plugin enable/disable)."""
    from utils.log_buffer import get_recent
    return {"logs": get_recent()}
