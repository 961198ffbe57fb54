"""
Socket.IO relay.

Clients join a room per project (the raw project id) and, for
notifications, a room per user (``user:<id>``). Task and chat events a
client emits are rebroadcast to everyone else in the project room. Nothing
is persisted; the API server remains the source of truth.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import parse_qs

import jwt
import socketio
import structlog
from pydantic import ValidationError

from taskhub_shared.events import (
    FORWARDED_EVENTS,
    ClientEvent,
    JoinProject,
    ProjectEvent,
    ServerEvent,
    project_room,
    user_room,
)

from .config import RelayConfig
from .metrics import MetricsCollector

log = structlog.get_logger()


def _room_id(data: Any) -> Optional[str]:
    """Accept a bare id (string or number) as sent by ``leave-project``/``join-user``."""
    if isinstance(data, bool):
        return None
    if isinstance(data, (str, int)):
        value = str(data).strip()
        return value or None
    return None


class RelayServer:
    """Owns the ``socketio.AsyncServer`` and its event handlers."""

    def __init__(self, config: RelayConfig, metrics: MetricsCollector | None = None):
        self.config = config
        self.metrics = metrics or MetricsCollector()
        self.connections = 0

        origins = config.server.cors_origins
        manager = socketio.AsyncRedisManager(config.redis_url) if config.redis_url else None
        self.sio = socketio.AsyncServer(
            async_mode="aiohttp",
            cors_allowed_origins="*" if origins == ["*"] else origins,
            client_manager=manager,
        )
        self._register_handlers()

    @property
    def notify_secret(self) -> str | None:
        return self.config.notify_secret

    def _register_handlers(self) -> None:
        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on(ClientEvent.JOIN_PROJECT.value, self.on_join_project)
        self.sio.on(ClientEvent.LEAVE_PROJECT.value, self.on_leave_project)
        self.sio.on(ClientEvent.JOIN_USER.value, self.on_join_user)
        for incoming, outgoing in FORWARDED_EVENTS.items():
            self.sio.on(incoming, self._forwarder(incoming, outgoing))

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def _authenticate(self, environ: dict, auth: Any) -> str:
        token = None
        if isinstance(auth, dict):
            token = auth.get("token")
        if not token:
            query = parse_qs(environ.get("QUERY_STRING", ""))
            token = (query.get("token") or [None])[0]
        secret = self.config.auth.secret
        if not token or not secret:
            raise socketio.exceptions.ConnectionRefusedError("unauthorized")
        try:
            payload = jwt.decode(token, secret, algorithms=[self.config.auth.algorithm])
        except jwt.PyJWTError:
            raise socketio.exceptions.ConnectionRefusedError("unauthorized")
        user_id = payload.get("sub")
        if not user_id:
            raise socketio.exceptions.ConnectionRefusedError("unauthorized")
        return str(user_id)

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        user_id = None
        if self.config.auth.required:
            try:
                user_id = self._authenticate(environ, auth)
            except socketio.exceptions.ConnectionRefusedError:
                self.metrics.inc("connections_refused_total")
                log.warning("relay.connection_refused", sid=sid)
                raise
        await self.sio.save_session(sid, {"user_id": user_id})
        if user_id:
            await self.sio.enter_room(sid, user_room(user_id))

        self.connections += 1
        self.metrics.inc("connections_total")
        self.metrics.set_gauge("connections_active", self.connections)
        log.info("relay.connected", sid=sid, user_id=user_id)

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        self.connections = max(0, self.connections - 1)
        self.metrics.set_gauge("connections_active", self.connections)
        log.info("relay.disconnected", sid=sid)

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    async def _join_user_room(self, sid: str, user_id: str) -> bool:
        session = await self.sio.get_session(sid)
        owner = session.get("user_id") if session else None
        if owner and owner != user_id:
            log.warning("relay.join_user_denied", sid=sid, user_id=user_id)
            return False
        await self.sio.enter_room(sid, user_room(user_id))
        log.debug("relay.joined_user", sid=sid, user_id=user_id)
        return True

    async def on_join_project(self, sid: str, data: Any) -> None:
        user_id = None
        project_id = _room_id(data)
        if project_id is None and isinstance(data, dict):
            try:
                payload = JoinProject.model_validate(data)
            except ValidationError:
                payload = None
            if payload:
                project_id, user_id = payload.project_id, payload.user_id

        if project_id is None:
            self._drop(sid, ClientEvent.JOIN_PROJECT.value, "invalid project id")
            return

        await self.sio.enter_room(sid, project_room(project_id))
        log.debug("relay.joined_project", sid=sid, project_id=project_id)
        if user_id:
            await self._join_user_room(sid, user_id)

    async def on_leave_project(self, sid: str, data: Any) -> None:
        project_id = _room_id(data)
        if project_id is None:
            self._drop(sid, ClientEvent.LEAVE_PROJECT.value, "invalid project id")
            return
        await self.sio.leave_room(sid, project_room(project_id))
        log.debug("relay.left_project", sid=sid, project_id=project_id)

    async def on_join_user(self, sid: str, data: Any) -> None:
        user_id = _room_id(data)
        if user_id is None:
            self._drop(sid, ClientEvent.JOIN_USER.value, "invalid user id")
            return
        await self._join_user_room(sid, user_id)

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    def _forwarder(self, incoming: str, outgoing: str):
        async def handler(sid: str, data: Any) -> None:
            await self.forward(sid, incoming, outgoing, data)
        handler.__name__ = f"on_{incoming.replace('-', '_')}"
        return handler

    async def forward(self, sid: str, incoming: str, outgoing: str, data: Any) -> bool:
        """Rebroadcast ``data`` as ``outgoing`` to its project room, skipping the sender."""
        if not isinstance(data, dict):
            self._drop(sid, incoming, "payload is not an object")
            return False
        try:
            event = ProjectEvent.model_validate(data)
        except ValidationError:
            self._drop(sid, incoming, "missing projectId")
            return False

        await self.sio.emit(outgoing, data, room=project_room(event.project_id), skip_sid=sid)
        self.metrics.inc("events_forwarded_total", event=incoming)
        log.debug(
            "relay.event_forwarded",
            sid=sid,
            event=incoming,
            emitted=outgoing,
            project_id=event.project_id,
        )
        return True

    def _drop(self, sid: str, event: str, reason: str) -> None:
        self.metrics.inc("events_dropped_total", event=event)
        log.warning("relay.event_dropped", sid=sid, event=event, reason=reason)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def notify(self, user_id: str, notification: Any) -> None:
        """Emit ``notification`` to every socket in ``user:<user_id>``."""
        await self.sio.emit(ServerEvent.NOTIFICATION.value, notification, room=user_room(user_id))
        self.metrics.inc("notifications_pushed_total")
        log.info("relay.notification_pushed", user_id=user_id)
