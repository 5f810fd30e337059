import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from staffops.db import SessionLocal
from staffops.errors import ApiError
from staffops.realtime import ConnectionManager, WebSocketConnection
from staffops.security import authenticate_token, resolve_user

router = APIRouter(tags=["realtime"])
logger = logging.getLogger("staffops.realtime")


def _extract_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization") or ""
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _authenticate(token: str | None) -> str:
    user_id = authenticate_token(token)
    db = SessionLocal()
    try:
        return resolve_user(db, user_id).user_id
    finally:
        db.close()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket) -> None:
    try:
        user_id = await asyncio.to_thread(_authenticate, _extract_token(websocket))
    except ApiError as exc:
        logger.info("realtime_connection_rejected", extra={"code": exc.code})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager: ConnectionManager = websocket.app.state.connection_manager
    connection = WebSocketConnection(websocket, asyncio.get_running_loop())
    # Registered ahead of accept(); sends are skipped until the socket is connected.
    manager.register(user_id, connection)
    try:
        await websocket.accept()
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.unregister(user_id, connection)
