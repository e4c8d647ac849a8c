"""
Authorization API – provider link status and on-demand authorization checks.

Checks query the provider directly and never change plugin state.
"""

from fastapi import APIRouter, HTTPException, Request

from config import PROVIDER_NAME, PROVIDER_URL, QUERY_TIMEOUT
from services.authorization import describe_error

router = APIRouter()


def _provider(request: Request):
    availability = request.app.state.host.provider
    if not availability.available:
        raise HTTPException(
            503,
            f"{PROVIDER_NAME} not found! Download from {PROVIDER_URL} ({availability.reason})",
        )
    return availability.provider


@router.get("/status")
def authorization_status(request: Request):
    provider = _provider(request)
    try:
        linked = provider.is_server_linked()
    except Exception as exc:
        raise HTTPException(502, f"Authorization error: {describe_error(exc)}")
    return {"linked": bool(linked), "source": request.app.state.host.provider.source}


@router.get("/{consumer_id}")
def authorization_check(consumer_id: str, request: Request):
    provider = _provider(request)
    try:
        authorized = provider.require_authorization(consumer_id, timeout=QUERY_TIMEOUT)
    except Exception as exc:
        raise HTTPException(502, f"Authorization error: {describe_error(exc)}")
    return {"consumer_id": consumer_id, "authorized": authorized}
