"""
Info API routes – host metadata and provider availability.
"""

from fastapi import APIRouter, Request

from config import APP_NAME, APP_VERSION, PROVIDER_NAME, PROVIDER_URL

router = APIRouter()


@router.get("/info")
def info(request: Request):
    from plugin_loader import loaded_plugins

    host = request.app.state.host
    return {
        "app_name": APP_NAME,
        "version": APP_VERSION,
        "provider_name": PROVIDER_NAME,
        "provider_url": PROVIDER_URL,
        "provider": host.provider.to_dict(),
        "loaded_plugins": list(loaded_plugins),
    }
