"""
Plugins API – loaded plugins with their host state and gate outcome.
"""

from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


@router.get("")
def list_plugins(request: Request):
    return {"plugins": request.app.state.host.describe()}


@router.get("/{name}")
def get_plugin(name: str, request: Request):
    host = request.app.state.host
    plugin = host.get(name)
    if plugin is None:
        raise HTTPException(404, f"Plugin '{name}' not found")
    info = plugin.describe()
    info["state"] = host.state_of(name).value
    return info
