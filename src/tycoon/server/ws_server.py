"""
WebSocket front for a GameService.

Each request {"type", "request_id", "data"} is dispatched to the service
method named by its type; the reply echoes the request_id.
"""
import asyncio
import inspect
import json
import logging
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed

from tycoon.client.network.service import GameService, ServiceError
from tycoon.shared.enums import MessageType

logger = logging.getLogger(__name__)

REQUEST_TYPES = {t.value for t in MessageType} - {MessageType.RESPONSE.value, MessageType.ERROR.value}


def _serialize(result):
    if hasattr(result, "to_dict"):
        return result.to_dict()
    if isinstance(result, list):
        return [_serialize(item) for item in result]
    return result


def _error(request_id, message: str, status) -> dict:
    return {
        "type": MessageType.ERROR.value,
        "request_id": request_id,
        "data": {"success": False, "message": message, "status": status},
    }


class TycoonServer:
    """Serves one GameService to any number of websocket clients."""

    def __init__(self, service: GameService, host: str = "0.0.0.0", port: int = 8765):
        self.service = service
        self.host = host
        self.port = port
        self._server = None

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port (useful when started on port 0)."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def start(self) -> None:
        self._server = await websockets.serve(self.handle_connection, self.host, self.port)
        logger.info(f"Game service listening on ws://{self.host}:{self.bound_port}")

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Game service stopped")

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Future()
        finally:
            await self.stop()

    async def handle_connection(self, websocket) -> None:
        logger.info("Client connected")
        try:
            async for raw in websocket:
                reply = await self.dispatch(raw)
                await websocket.send(json.dumps(reply))
        except ConnectionClosed as e:
            logger.info(f"Client connection closed: {e}")
        except Exception as e:
            logger.error(f"Unexpected error in handle_connection: {e}", exc_info=True)

    async def dispatch(self, raw: str) -> dict:
        """Run one request and build the reply message."""
        request_id = None
        try:
            message = json.loads(raw)
            request_id = message.get("request_id")
            msg_type = message.get("type")
            if msg_type not in REQUEST_TYPES:
                return _error(request_id, f"Unknown message type: {msg_type}", 400)
            handler = getattr(self.service, msg_type)
            bound = inspect.signature(handler).bind(**message.get("data", {}))
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Bad request {request_id}: {e}")
            return _error(request_id, f"Bad request: {e}", 400)

        try:
            result = await handler(*bound.args, **bound.kwargs)
        except ServiceError as e:
            return _error(request_id, e.message, e.status)
        except Exception as e:
            logger.error(f"{msg_type} failed for request {request_id}: {e}", exc_info=True)
            return _error(request_id, "Internal service error", 500)

        return {
            "type": MessageType.RESPONSE.value,
            "request_id": request_id,
            "data": {"success": True, "result": _serialize(result)},
        }
