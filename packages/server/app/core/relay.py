"""
Push channel to the realtime relay.

The relay exposes ``POST /notify``; the server calls it after persisting a
notification so the recipient's open sessions receive it immediately. The
relay is best effort: failures are logged and never raised to the caller.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from app.core.config import get_settings

log = structlog.get_logger()
settings = get_settings()


class RelayClient:
    """Thin httpx client for the relay's notification webhook."""

    def __init__(
        self,
        base_url: str,
        secret: str = "",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._secret = secret
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"X-Relay-Secret": self._secret} if self._secret else {}
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def notify(self, user_id: Any, notification: dict[str, Any]) -> bool:
        """Push ``notification`` to ``user:<user_id>``. Returns True on success."""
        try:
            response = await self._get_client().post(
                "/notify",
                json={"userId": str(user_id), "notification": notification},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning(
                "relay.notify_failed",
                user_id=str(user_id),
                error=str(exc) or exc.__class__.__name__,
            )
            return False
        log.debug("relay.notified", user_id=str(user_id))
        return True

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


_relay_client: RelayClient | None = None


def get_relay_client() -> RelayClient:
    """Get or create the process-wide relay client."""
    global _relay_client
    if _relay_client is None:
        _relay_client = RelayClient(
            settings.relay_url,
            secret=settings.relay_notify_secret,
            timeout=settings.relay_timeout_seconds,
        )
    return _relay_client


async def close_relay_client() -> None:
    global _relay_client
    if _relay_client is not None:
        await _relay_client.close()
        _relay_client = None
