"""Push channel delivering payloads to websocket connections held by this process."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from typing import Any

from .analyzer_errors import PushDeliveryError
from .interfaces import PushChannelPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _AttachedSocket:
    """Websocket handle plus the event loop that owns it.

    Attributes:
        websocket: Object exposing an async `send_text(str)` method.
        loop: Event loop the websocket was accepted on.
    """

    websocket: Any
    loop: asyncio.AbstractEventLoop


class WebSocketPushChannel(PushChannelPort):
    """Thread-safe registry of accepted websockets with blocking send.

    `push_send` is called from worker threads (job processing, fan-out pool)
    and hands the coroutine to the owning event loop. It must not be called
    from that event loop's own thread.
    """

    def __init__(self, send_timeout_seconds: float = 5.0):
        """Initialize an empty push channel.

        Args:
            send_timeout_seconds: Upper bound for one delivery.

        Raises:
            ValueError: Raised when timeout is not positive.
        """

        if send_timeout_seconds <= 0:
            raise ValueError("send_timeout_seconds must be > 0")
        self._send_timeout_seconds = send_timeout_seconds
        self._lock = threading.Lock()
        self._sockets: dict[str, _AttachedSocket] = {}

    def push_attach(self, connection_id: str, websocket: Any, loop: asyncio.AbstractEventLoop) -> None:
        """Attach one accepted websocket under its connection id.

        Args:
            connection_id: Transport connection identifier.
            websocket: Accepted websocket exposing async `send_text`.
            loop: Event loop that owns the websocket.

        Returns:
            None: The socket is registered as side effect.
        """

        with self._lock:
            self._sockets[connection_id] = _AttachedSocket(websocket=websocket, loop=loop)

    def push_detach(self, connection_id: str) -> None:
        """Detach one websocket; unknown ids are ignored."""

        with self._lock:
            self._sockets.pop(connection_id, None)

    def push_attached_count(self) -> int:
        """Return the number of attached websockets."""

        with self._lock:
            return len(self._sockets)

    def push_send(self, connection_id: str, payload: str) -> None:
        """Deliver one payload and wait for the send to complete.

        Args:
            connection_id: Target connection identifier.
            payload: Serialized JSON payload.

        Returns:
            None: Payload is delivered as side effect.

        Raises:
            PushDeliveryError: Raised when the connection is not attached, closed or slow.
            RuntimeError: Raised when called from the owning event loop thread.
        """

        with self._lock:
            attached_socket = self._sockets.get(connection_id)
        if attached_socket is None:
            raise PushDeliveryError("connection is not attached to this process", connection_id=connection_id)
        if attached_socket.loop.is_closed():
            self.push_detach(connection_id)
            raise PushDeliveryError("connection event loop is closed", connection_id=connection_id)
        if _push_running_loop() is attached_socket.loop:
            raise RuntimeError("push_send must not be called from the websocket event loop thread")

        delivery_future = asyncio.run_coroutine_threadsafe(
            attached_socket.websocket.send_text(payload),
            attached_socket.loop,
        )
        try:
            delivery_future.result(timeout=self._send_timeout_seconds)
        except concurrent.futures.TimeoutError as error:
            delivery_future.cancel()
            raise PushDeliveryError("push delivery timed out", connection_id=connection_id) from error
        except Exception as error:
            logger.debug("push delivery failed connection_id=%s error=%s", connection_id, type(error).__name__)
            raise PushDeliveryError("push delivery failed", connection_id=connection_id) from error


def _push_running_loop() -> asyncio.AbstractEventLoop | None:
    """Return the event loop running in the current thread, if any."""

    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
