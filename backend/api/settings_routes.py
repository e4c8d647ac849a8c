"""
Settings API routes – read/write persistent host settings.

Provider changes take effect on the next host start.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from services import settings

router = APIRouter()


@router.get("/settings")
def get_settings():
    return settings.get_all()


class ProviderSettingsRequest(BaseModel):
    url: Optional[str] = None
    server_id: Optional[str] = None
    token: Optional[str] = None
    module: Optional[str] = None


@router.put("/settings/provider")
def update_provider_settings(body: ProviderSettingsRequest):
    url = body.url.strip() if body.url is not None else None
    if url and not url.startswith(("http://", "https://")):
        raise HTTPException(400, "Provider URL must start with http:// or https://")
    settings.set_provider(url=url, server_id=body.server_id, token=body.token, module=body.module)
    return {"ok": True, "restart_required": True}


class DelayRequest(BaseModel):
    ticks: int


@router.put("/settings/enable-delay")
def update_enable_delay(body: DelayRequest):
    if body.ticks < 0:
        raise HTTPException(400, "Delay must not be negative")
    settings.set_enable_delay_ticks(body.ticks)
    return {"ok": True, "ticks": settings.get_enable_delay_ticks()}
