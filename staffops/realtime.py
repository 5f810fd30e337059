from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from concurrent.futures import Future
from typing import Any, Protocol

from fastapi import Request, WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger("staffops.realtime")

EVENT_NOTIFICATION = "notification"
EVENT_NEW_MESSAGE = "new_message"


class Connection(Protocol):
    def send_json(self, payload: dict[str, Any]) -> None: ...


class Broadcaster(Protocol):
    def broadcast_to_user(self, user_id: str, payload: dict[str, Any]) -> int: ...


class WebSocketConnection:
    """Thread-safe handle around a live socket owned by `loop`.

    Sends are scheduled onto the socket's event loop and never awaited; callers
    may run in any thread. Frames go out one at a time, in scheduling order.
    """

    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop) -> None:
        self.websocket = websocket
        self.loop = loop
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self.websocket.application_state == WebSocketState.CONNECTED

    def send_json(self, payload: dict[str, Any]) -> None:
        if not self.is_open:
            return
        future = asyncio.run_coroutine_threadsafe(self._send(payload), self.loop)
        future.add_done_callback(self._log_failed_send)

    def close(self, code: int = 1001) -> None:
        if not self.is_open:
            return
        future = asyncio.run_coroutine_threadsafe(self._close(code), self.loop)
        future.add_done_callback(self._log_failed_send)

    async def _send(self, payload: dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(payload)

    async def _close(self, code: int) -> None:
        async with self._send_lock:
            await self.websocket.close(code=code)

    @staticmethod
    def _log_failed_send(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("realtime_send_failed", extra={"error": exc.__class__.__name__})


class ConnectionManager:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connections: dict[str, set[Connection]] = defaultdict(set)

    def register(self, user_id: str, connection: Connection) -> None:
        with self._lock:
            self._connections[user_id].add(connection)
            count = len(self._connections[user_id])
        logger.info("realtime_connection_registered", extra={"user_id": user_id, "connections": count})

    def unregister(self, user_id: str, connection: Connection) -> None:
        with self._lock:
            user_connections = self._connections.get(user_id)
            if user_connections is None:
                return
            user_connections.discard(connection)
            count = len(user_connections)
            if not user_connections:
                self._connections.pop(user_id, None)
        logger.info("realtime_connection_unregistered", extra={"user_id": user_id, "connections": count})

    def connections_for(self, user_id: str) -> list[Connection]:
        with self._lock:
            return list(self._connections.get(user_id, ()))

    def connected_user_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._connections)

    def broadcast_to_user(self, user_id: str, payload: dict[str, Any]) -> int:
        delivered = 0
        # Snapshot under the lock; sends happen outside it.
        for connection in self.connections_for(user_id):
            try:
                connection.send_json(payload)
            except Exception:
                logger.exception(
                    "realtime_broadcast_failed",
                    extra={"user_id": user_id, "event_type": payload.get("type")},
                )
                continue
            delivered += 1
        return delivered

    def close_all(self) -> None:
        with self._lock:
            snapshot = [conn for conns in self._connections.values() for conn in conns]
            self._connections.clear()
        for connection in snapshot:
            close = getattr(connection, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception:
                logger.exception("realtime_close_failed")


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.connection_manager
