"""WebSocket bridge onto the change feed."""

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...app import Application
from ...errors import FeedUnavailableError
from ...logging_config import get_logger, log_context
from ...models import ChangeEvent, Table

logger = get_logger(__name__)

FILTER_LITERALS = {"true": True, "false": False, "null": None}


def parse_filters(params) -> dict[str, object]:
    """Query parameters to column filters; true/false/null become literals."""
    return {column: FILTER_LITERALS.get(value.lower(), value) for column, value in params.items()}


def create_realtime_router(app: Application) -> APIRouter:
    """Create realtime router.

    Clients connect to ``/ws/feed/{table}`` with column filters as query
    parameters (``?owner_id=...``) and receive every matching change event
    as JSON. A ``{"type": "ping"}`` message is answered with a pong.
    """
    router = APIRouter(tags=["realtime"])

    @router.websocket("/ws/feed/{table}")
    async def feed_socket(websocket: WebSocket, table: str):
        await websocket.accept()
        try:
            target = Table(table)
        except ValueError:
            await websocket.close(code=1008, reason=f"Unknown table: {table}")
            return

        filters = parse_filters(websocket.query_params)
        outbox: asyncio.Queue[ChangeEvent] = asyncio.Queue()

        async def enqueue(event: ChangeEvent) -> None:
            outbox.put_nowait(event)

        try:
            subscription = app.feed.subscribe(target, enqueue, filters=filters)
        except FeedUnavailableError as e:
            await websocket.close(code=1011, reason=str(e))
            return

        async def forward() -> None:
            while True:
                event = await outbox.get()
                await websocket.send_text(json.dumps(event.to_dict(), default=str))

        sender = asyncio.create_task(forward())
        logger.info("Feed socket opened on %s %s", target.value, filters)
        try:
            with log_context(table=target.value):
                await receive(websocket)
        except WebSocketDisconnect:
            logger.info("Feed socket closed on %s", target.value)
        finally:
            subscription.close()
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("Feed socket sender on %s failed: %s", target.value, e)

    return router


async def receive(websocket: WebSocket) -> None:
    """Answer pings until the client disconnects."""
    while True:
        data = await websocket.receive_text()
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON data from client: %s", data[:100])
            continue
        if isinstance(message, dict) and message.get("type") == "ping":
            await websocket.send_text(json.dumps({"type": "pong"}))
