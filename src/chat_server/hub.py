"""Connected chat users and message fan-out."""

import asyncio
import itertools
import logging

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class ChatHub:
    """Assigns user ids and relays every message to all other users.

    Each user gets an outgoing queue drained by its own task, so a slow
    receiver never holds up the sender.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._users: dict[int, asyncio.Queue[str]] = {}

    @property
    def user_ids(self) -> list[int]:
        return list(self._users)

    def connect(self) -> tuple[int, asyncio.Queue[str]]:
        user_id = next(self._ids)
        queue: asyncio.Queue[str] = asyncio.Queue()
        self._users[user_id] = queue
        logger.info(f"new chat user: {user_id}")
        return user_id, queue

    def disconnect(self, user_id: int) -> None:
        logger.info(f"good bye user: {user_id}")
        self._users.pop(user_id, None)

    def broadcast(self, sender_id: int, text: str) -> None:
        message = f"<User#{sender_id}>: {text}"
        for user_id, queue in self._users.items():
            if user_id != sender_id:
                queue.put_nowait(message)

    async def serve(self, websocket: WebSocket) -> None:
        """Accept one user's connection and run it until it closes."""
        # The id is taken before the handshake completes, so ids follow
        # connection order as seen by clients.
        user_id, queue = self.connect()
        sender: asyncio.Task[None] | None = None
        try:
            await websocket.accept()
            sender = asyncio.create_task(self._forward(websocket, queue))
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                # Binary frames are skipped
                text = message.get("text")
                if text is not None:
                    self.broadcast(user_id, text)
        except WebSocketDisconnect:
            pass
        finally:
            self.disconnect(user_id)
            if sender is not None:
                sender.cancel()
                try:
                    await sender
                except asyncio.CancelledError:
                    pass

    async def _forward(self, websocket: WebSocket, queue: asyncio.Queue[str]) -> None:
        while True:
            message = await queue.get()
            try:
                await websocket.send_text(message)
            except Exception as e:
                logger.error(f"websocket send error: {e}")
