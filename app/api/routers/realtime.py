"""Realtime websocket router registering connections per organization."""

from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from app.adapters import WebSocketPushChannel
from app.db import ConnectionRegistryPort
from app.domain import AuthorizationError
from app.notifications import NotificationDeliveryError, NotificationFanout

from ..auth import JwtAuthValidator

logger = logging.getLogger(__name__)


def api_create_realtime_router(
    auth_validator: JwtAuthValidator,
    connection_registry: ConnectionRegistryPort,
    push_channel: WebSocketPushChannel,
    notification_fanout: NotificationFanout,
) -> APIRouter:
    """Create websocket router for `/v1/realtime`.

    Args:
        auth_validator: Token validator for the `auth_token` query parameter.
        connection_registry: Connection-to-organization directory.
        push_channel: Process-local websocket registry used for pushes.
        notification_fanout: Fan-out used to relay client messages.

    Returns:
        APIRouter: Router exposing the realtime websocket.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if auth_validator is None:
        raise ValueError("auth_validator must not be None")
    if connection_registry is None:
        raise ValueError("connection_registry must not be None")
    if push_channel is None:
        raise ValueError("push_channel must not be None")
    if notification_fanout is None:
        raise ValueError("notification_fanout must not be None")

    router = APIRouter(tags=["realtime"])

    @router.websocket("/v1/realtime")
    async def api_realtime_connect(websocket: WebSocket, auth_token: str | None = Query(default=None)) -> None:
        """Accept one authenticated connection and relay its messages to the organization."""

        try:
            claims = auth_validator.auth_validate_token(auth_token)
        except AuthorizationError as error:
            logger.info("realtime connection rejected reason=%s", error.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await websocket.accept()
        connection_id = uuid.uuid4().hex
        push_channel.push_attach(connection_id, websocket, asyncio.get_running_loop())
        try:
            await run_in_threadpool(connection_registry.db_connection_register, connection_id, claims.org_id)
            logger.info("realtime connected connection_id=%s org_id=%s", connection_id, claims.org_id)
            while True:
                message = await websocket.receive_text()
                try:
                    await run_in_threadpool(notification_fanout.notification_relay, claims.org_id, message)
                except NotificationDeliveryError as error:
                    logger.warning("realtime relay incomplete connection_id=%s error=%s", connection_id, error.message)
        except WebSocketDisconnect:
            pass
        finally:
            push_channel.push_detach(connection_id)
            try:
                await run_in_threadpool(connection_registry.db_connection_unregister, connection_id)
            except RuntimeError as error:
                logger.warning("realtime unregister failed connection_id=%s error=%s", connection_id, error)
            logger.info("realtime disconnected connection_id=%s org_id=%s", connection_id, claims.org_id)

    return router
