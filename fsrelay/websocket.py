import asyncio
import itertools
import json
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket

from fsrelay.errors import RelayError, ScriptExecutionError

logger = logging.getLogger(__name__)


class WebSocketContext:
    """
    Execution context reached over a WebSocket.

    execute() sends an ``execute`` message and waits for the matching
    ``result`` or ``error`` reply, which the /ws receive loop feeds in through
    handle_message().
    """

    def __init__(self, context_id: str, websocket: WebSocket, timeout: float = 10.0):
        self.context_id = context_id
        self.websocket = websocket
        self.timeout = timeout
        self.pending: Dict[str, asyncio.Future] = {}
        self._ids = itertools.count(1)

    async def _send_message(self, message_type: str, data: Dict[str, Any]):
        message = {"type": message_type, "data": data}
        await self.websocket.send_text(json.dumps(message, default=str))

    async def execute(self, code: str) -> Any:
        """Run code in the context and return its result"""
        request_id = str(next(self._ids))
        future = asyncio.get_running_loop().create_future()
        self.pending[request_id] = future
        try:
            await self._send_message("execute", {"id": request_id, "code": code})
            return await asyncio.wait_for(future, self.timeout)
        except asyncio.TimeoutError as exc:
            raise RelayError(
                f"Context {self.context_id} did not answer within {self.timeout}s"
            ) from exc
        finally:
            self.pending.pop(request_id, None)

    async def send(self, channel: str, message: Dict[str, Any]):
        """Send a one-way message on channel; no reply is awaited"""
        await self._send_message(channel, message)

    def handle_message(self, message: Dict[str, Any]) -> bool:
        """
        Route a reply from the context to its waiting execute() call.

        Returns:
            True if the message answered a pending request
        """
        message_type = message.get("type")
        data = message.get("data", {})
        if not isinstance(data, dict):
            logger.warning(f"Malformed {message_type} message from {self.context_id}")
            return False
        future: Optional[asyncio.Future] = self.pending.get(str(data.get("id")))

        if message_type not in ("result", "error") or future is None:
            logger.debug(f"Ignoring message from {self.context_id}: {message_type}")
            return False
        if future.done():
            return False

        if message_type == "result":
            future.set_result(data.get("value"))
        else:
            future.set_exception(
                ScriptExecutionError(data.get("message") or "Remote execution failed")
            )
        return True

    def close(self):
        """Fail every pending execute() call"""
        for future in self.pending.values():
            if not future.done():
                future.set_exception(RelayError(f"Context {self.context_id} disconnected"))
        self.pending.clear()

    async def close_socket(self):
        """Close the underlying WebSocket; a socket that is already gone is left alone"""
        try:
            await self.websocket.close()
        except RuntimeError as e:
            logger.debug(f"Socket for {self.context_id} already closed: {e}")


class ConnectionManager:
    """Manages hosted execution contexts connected over WebSocket"""

    def __init__(self):
        self.active_connections: Dict[str, WebSocketContext] = {}

    async def connect(self, websocket: WebSocket, timeout: float = 10.0) -> WebSocketContext:
        """Accept and store a new WebSocket connection"""
        await websocket.accept()
        context = WebSocketContext(uuid.uuid4().hex, websocket, timeout)
        self.active_connections[context.context_id] = context
        await context.send("connected", {"context_id": context.context_id})
        logger.info(f"Context connected: {context.context_id}")
        return context

    def disconnect(self, context: WebSocketContext):
        """Remove a context and fail its pending requests"""
        self.active_connections.pop(context.context_id, None)
        context.close()
        logger.info(f"Context disconnected: {context.context_id}")

    async def drop(self, context: WebSocketContext):
        """Disconnect a context and close its socket"""
        self.disconnect(context)
        await context.close_socket()

    def get(self, context_id: str) -> Optional[WebSocketContext]:
        return self.active_connections.get(context_id)


# Global connection manager instance
manager = ConnectionManager()
