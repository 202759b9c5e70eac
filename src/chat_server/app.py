"""Chat server FastAPI application factory."""

import logging
from pathlib import Path

from fastapi import FastAPI, WebSocket
from fastapi.staticfiles import StaticFiles

from chat_server.hub import ChatHub

logger = logging.getLogger(__name__)


def create_app(static_assets: str, hub: ChatHub | None = None) -> FastAPI:
    """Create the app: ``/chat`` WebSocket plus the UI from *static_assets*."""
    hub = hub or ChatHub()
    app = FastAPI(title="Chat", version="0.1.0")
    app.state.hub = hub

    @app.websocket("/chat")
    async def chat_endpoint(websocket: WebSocket) -> None:
        await hub.serve(websocket)

    # Static UI must be mounted last so it does not shadow /chat
    app.mount("/", StaticFiles(directory=Path(static_assets), html=True), name="ui")
    logger.info(f"Serving static files from {static_assets}")
    return app
