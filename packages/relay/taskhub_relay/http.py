"""
HTTP routes served next to the Socket.IO endpoint.

- POST /notify   push a notification to a user's room (called by the API)
- GET  /health   JSON status
- GET  /metrics  Prometheus text
"""

from __future__ import annotations

import hmac

import structlog
from aiohttp import web
from pydantic import ValidationError

from taskhub_shared.events import NotifyRequest

from .config import RelayConfig
from .server import RelayServer

log = structlog.get_logger()

RELAY_KEY = web.AppKey("relay", RelayServer)

MISSING_DATA = {"error": "Missing userId or notification data"}


async def notify_handler(request: web.Request) -> web.Response:
    relay = request.app[RELAY_KEY]

    secret = relay.notify_secret
    if secret:
        supplied = request.headers.get("X-Relay-Secret", "")
        if not hmac.compare_digest(supplied.encode(), secret.encode()):
            log.warning("relay.notify_unauthorized", remote=request.remote)
            return web.json_response({"error": "Unauthorized"}, status=401)

    try:
        body = await request.json()
    except ValueError:
        body = None

    try:
        payload = NotifyRequest.model_validate(body)
    except ValidationError:
        relay.metrics.inc("events_dropped_total", event="notify")
        return web.json_response(MISSING_DATA, status=400)

    await relay.notify(payload.user_id, payload.notification)
    return web.json_response({"success": True})


async def health_handler(request: web.Request) -> web.Response:
    relay = request.app[RELAY_KEY]
    return web.json_response(
        {
            "status": "ok",
            "connections": relay.connections,
            "uptime_seconds": round(relay.metrics.uptime_seconds, 1),
        }
    )


async def metrics_handler(request: web.Request) -> web.Response:
    relay = request.app[RELAY_KEY]
    return web.Response(text=relay.metrics.to_prometheus(), content_type="text/plain")


def create_app(config: RelayConfig, relay: RelayServer | None = None) -> web.Application:
    """Build the aiohttp application with the Socket.IO server attached."""
    relay = relay or RelayServer(config)
    app = web.Application()
    app[RELAY_KEY] = relay
    relay.sio.attach(app)
    app.router.add_post("/notify", notify_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/metrics", metrics_handler)
    return app
