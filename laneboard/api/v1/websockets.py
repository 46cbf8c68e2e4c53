import asyncio
from contextlib import suppress
from typing import Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from laneboard.core import get_settings
from laneboard.db.database import async_session_factory
from laneboard.api.dependencies.auth import get_user_from_token
from laneboard.services.stream_service import BoardChannel, StreamSubscription
from laneboard.logs.server_log import api_logger
from laneboard.schemas.websocket import (
    WebSocketEventType,
    WebSocketMessage,
    WebSocketCommand
)

# Get application settings
settings = get_settings()

router = APIRouter(tags=["websockets"])


def _frame(event: WebSocketEventType, **data) -> str:
    return WebSocketMessage(event=event, data=data).model_dump_json()


async def _reject(websocket: WebSocket, reason: str) -> None:
    await websocket.send_text(_frame(WebSocketEventType.REJECT_SUBSCRIPTION, reason=reason))
    await websocket.close(code=1008)  # Policy violation


async def _pump(websocket: WebSocket, subscription: StreamSubscription) -> None:
    """Single writer of the socket: forwards queued frames in order"""
    try:
        while True:
            message = await subscription.next_message()
            await websocket.send_text(message)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        api_logger.warning(f"WebSocket: send to user {subscription.user_id} failed: {str(e)}")


async def _receive_text(websocket: WebSocket) -> str:
    """Next text frame; binary frames are a protocol error"""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    if message.get("text") is None:
        raise ValueError("Expected a text frame")
    return message["text"]


async def _read_subscribe(websocket: WebSocket) -> Optional[str]:
    """Wait for the subscribe command; returns the signed stream name it carries"""
    raw = await asyncio.wait_for(_receive_text(websocket), timeout=settings.STREAM_HANDSHAKE_TIMEOUT)
    command = WebSocketCommand.model_validate_json(raw)
    if command.command != "subscribe":
        raise ValueError(f"Expected subscribe, got {command.command}")
    return command.data.get("signed_stream_name")


@router.websocket("/ws/stream")
async def board_stream_endpoint(
    websocket: WebSocket,
    token: Optional[str] = None
):
    """
    Live updates of one board.

    Authentication is done via token query parameter:
    ws://example.com/api/v1/ws/stream?token=your_access_token

    Commands from client:
    - {"command": "subscribe", "data": {"signed_stream_name": "..."}}  (first frame)
    - {"command": "ping", "data": {}}

    The server answers the subscribe command with ``confirm_subscription``
    or ``reject_subscription`` (followed by close code 1008), then pushes
    ``change`` frames for every committed mutation of the board.
    """
    registry = websocket.app.state.stream_registry
    client_host = websocket.client.host if websocket.client else "unknown"
    api_logger.info(f"WebSocket: New stream connection from {client_host}")

    await websocket.accept()
    subscription = StreamSubscription()

    try:
        signed_stream_name = await _read_subscribe(websocket)
    except WebSocketDisconnect:
        api_logger.info(f"WebSocket: {client_host} left before subscribing")
        return
    except asyncio.TimeoutError:
        api_logger.warning(f"WebSocket: {client_host} did not subscribe in time")
        await _reject(websocket, "subscribe timeout")
        return
    except ValueError as e:
        api_logger.warning(f"WebSocket: invalid subscribe frame from {client_host}: {str(e)}")
        await _reject(websocket, "invalid subscribe command")
        return

    async with async_session_factory() as db:
        user = await get_user_from_token(token, db)
        accepted = await BoardChannel.subscribe(db, registry, subscription, user, signed_stream_name)

    if not accepted:
        await _reject(websocket, subscription.rejection_reason)
        return

    await websocket.send_text(_frame(
        WebSocketEventType.CONFIRM_SUBSCRIPTION,
        board_id=subscription.board_id
    ))
    sender = asyncio.create_task(_pump(websocket, subscription))

    try:
        while True:
            try:
                raw = await _receive_text(websocket)
                command = WebSocketCommand.model_validate_json(raw)
            except ValueError:
                subscription.deliver(_frame(WebSocketEventType.ERROR, message="Invalid message format", code=400))
                continue

            if command.command == "ping":
                subscription.deliver(_frame(WebSocketEventType.PONG))
            else:
                subscription.deliver(_frame(
                    WebSocketEventType.ERROR,
                    message=f"Unknown command: {command.command}",
                    code=400
                ))
                api_logger.warning(f"WebSocket: User {subscription.user_id} sent unknown command: {command.command}")
    except WebSocketDisconnect:
        api_logger.info(f"WebSocket: User {subscription.user_id} disconnected from {subscription.stream_name}")
    finally:
        registry.remove(subscription)
        sender.cancel()
        with suppress(asyncio.CancelledError):
            await sender
