"""
PlugHost – FastAPI backend.
Hosts plugins and gates each GatedPlugin on a PlugCore authorization check.
"""

import argparse
import asyncio
import contextlib
import logging
import os
import socket

from config import APP_NAME, APP_VERSION, DEFAULT_PORT


def parse_args():
    parser = argparse.ArgumentParser(description=f"{APP_NAME} Backend")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to listen on")
    parser.add_argument(
        "--plugins-dir",
        type=str,
        default=None,
        help="Folder to load plugins from (overrides settings)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Auto-reload on file changes (dev only)",
    )
    return parser.parse_args()


def find_free_port(start: int) -> int:
    """Find a free TCP port starting from *start*."""
    for port in range(start, start + 100):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(("127.0.0.1", port))
                return port
        except OSError:
            continue
    raise RuntimeError(f"No free port found in range {start}-{start + 99}")


def create_app():
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from api.authorization import router as authorization_router
    from api.debug_routes import router as debug_router
    from api.info import router as info_router
    from api.plugins import router as plugins_router
    from api.settings_routes import router as settings_router

    @contextlib.asynccontextmanager
    async def lifespan(app):
        from pathlib import Path

        from plugin_loader import load_plugins
        from services.host import PluginHost
        from services.provider import resolve_provider
        from utils.paths import ensure_dir, resolve_plugins_dir

        log = logging.getLogger(__name__)
        availability = resolve_provider()
        if availability.available:
            log.info("Authorization provider: %s", availability.source)
        else:
            log.warning("No authorization provider: %s", availability.reason)

        # Built on the loop thread: this thread is the host's main thread from here on
        host = PluginHost(asyncio.get_running_loop(), availability)
        app.state.host = host

        plugins_dir = os.environ.get("PLUGHOST_PLUGINS_DIR") or str(resolve_plugins_dir())
        for plugin in load_plugins(Path(ensure_dir(plugins_dir))):
            try:
                host.register(plugin)
            except ValueError as exc:
                log.warning("%s", exc)
        host.enable_all()
        try:
            yield
        finally:
            host.shutdown()

    app = FastAPI(title=f"{APP_NAME} Backend", version=APP_VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(info_router, prefix="/api", tags=["info"])
    app.include_router(plugins_router, prefix="/api/plugins", tags=["plugins"])
    app.include_router(authorization_router, prefix="/api/authorization", tags=["authorization"])
    app.include_router(settings_router, prefix="/api", tags=["settings"])
    app.include_router(debug_router, prefix="/api/debug", tags=["debug"])

    @app.get("/api/health")
    async def health():
        return {"ok": True}

    return app


# Module-level app for uvicorn "main:app" (required for --reload)
app = create_app()


def main():
    args = parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    from utils.log_buffer import install
    install()

    # Passed through the environment so the reload subprocess sees it too
    if args.plugins_dir:
        os.environ["PLUGHOST_PLUGINS_DIR"] = os.path.abspath(args.plugins_dir)

    port = find_free_port(args.port)
    logging.getLogger(__name__).info("%s %s listening on 127.0.0.1:%d", APP_NAME, APP_VERSION, port)

    import uvicorn

    if args.reload:
        # Uvicorn requires import string for reload to work
        uvicorn.run(
            "main:app",
            host="127.0.0.1",
            port=port,
            log_level="warning",
            reload=True,
        )
    else:
        uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")


if __name__ == "__main__":
    main()
