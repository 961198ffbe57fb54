"""
Socket.IO connection to the relay.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

import socketio
import structlog

from taskhub_shared.events import ClientEvent, JoinProject

log = structlog.get_logger()

RECONNECTION_ATTEMPTS = 5
RECONNECTION_DELAY_SECONDS = 1

Handler = Callable[[Any], Awaitable[None]]


class RelayConnection:
    """
    Wraps ``socketio.AsyncClient`` with the relay's room operations.

    Several stores can share one connection: each event gets a single
    dispatcher on the socket that fans out to every subscribed handler.
    Joined rooms are remembered and joined again on every (re)connect, since
    the relay sees a fresh sid with no rooms after a reconnect.

    Emitting while disconnected is a logged no-op: realtime delivery is best
    effort and the API stays the source of truth.
    """

    def __init__(self, url: str, token: str | None = None, client: socketio.AsyncClient | None = None):
        self.url = url
        self.token = token
        self.sio = client or socketio.AsyncClient(
            reconnection=True,
            reconnection_attempts=RECONNECTION_ATTEMPTS,
            reconnection_delay=RECONNECTION_DELAY_SECONDS,
        )
        self._handlers: dict[str, list[Handler]] = {}
        # project id -> (subscriber count, user id sent with the join)
        self._projects: dict[str, tuple[int, Optional[str]]] = {}
        self._user_rooms: set[str] = set()
        self.sio.on("connect", self.handle_connect)

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    async def connect(self) -> None:
        auth = {"token": self.token} if self.token else None
        await self.sio.connect(self.url, transports=["websocket"], auth=auth)
        log.info("realtime.connected", url=self.url)

    async def disconnect(self) -> None:
        await self.sio.disconnect()

    def on(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers is None:
            handlers = self._handlers[event] = []
            self.sio.on(event, self._dispatcher(event))
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def _dispatcher(self, event: str) -> Handler:
        async def dispatch(data: Any = None) -> None:
            for handler in list(self._handlers.get(event, [])):
                try:
                    await handler(data)
                except Exception:
                    log.exception("realtime.handler_failed", event=event)
        return dispatch

    async def handle_connect(self) -> None:
        """Join every remembered room on the new sid."""
        for project_id, (_, user_id) in self._projects.items():
            await self.sio.emit(ClientEvent.JOIN_PROJECT.value, self._join_payload(project_id, user_id))
        for user_id in self._user_rooms:
            await self.sio.emit(ClientEvent.JOIN_USER.value, user_id)
        log.info("realtime.rooms_joined", projects=len(self._projects), users=len(self._user_rooms))

    async def emit(self, event: str, data: Any) -> bool:
        if not self.connected:
            log.debug("realtime.emit_skipped", event=event)
            return False
        await self.sio.emit(event, data)
        return True

    @staticmethod
    def _join_payload(project_id: str, user_id: Optional[str]) -> Any:
        if user_id is None:
            return project_id
        return JoinProject(project_id=project_id, user_id=user_id).model_dump(by_alias=True)

    async def join_project(self, project_id: Any, user_id: Optional[Any] = None) -> bool:
        key = str(project_id)
        count, known_user = self._projects.get(key, (0, None))
        user = str(user_id) if user_id is not None else known_user
        self._projects[key] = (count + 1, user)
        return await self.emit(ClientEvent.JOIN_PROJECT.value, self._join_payload(key, user))

    async def leave_project(self, project_id: Any) -> bool:
        """Drop one subscription; the room is left when none remain."""
        key = str(project_id)
        count, user = self._projects.get(key, (0, None))
        if count > 1:
            self._projects[key] = (count - 1, user)
            return False
        self._projects.pop(key, None)
        return await self.emit(ClientEvent.LEAVE_PROJECT.value, key)

    async def join_user(self, user_id: Any) -> bool:
        self._user_rooms.add(str(user_id))
        return await self.emit(ClientEvent.JOIN_USER.value, str(user_id))
