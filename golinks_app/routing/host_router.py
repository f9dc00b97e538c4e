"""
Host-based dispatch.

One process answers on several hostnames. Every HTTP request is handed to
exactly one sub-application, chosen by the hostname the client used and
the live host configuration at that moment.
"""

import logging
from typing import Mapping

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from golinks_app.services.host_config import HostConfig, host_of

logger = logging.getLogger(__name__)

UI = "ui"
INTERNAL = "internal"
PUBLIC = "public"
PUBLIC_API = "public_api"


def effective_host(headers: Headers) -> str:
    """
    Host the client asked for: X-Forwarded-Host wins over Host. Port
    stripped, lower-cased. Only trustworthy behind a reverse proxy.
    """
    forwarded = headers.get("x-forwarded-host", "")
    if forwarded:
        return host_of(forwarded.split(",")[0])
    return host_of(headers.get("host", ""))


def request_scheme(request: Request) -> str:
    """Scheme of the original request, honouring X-Forwarded-Proto."""
    forwarded = request.headers.get("x-forwarded-proto", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.url.scheme


def select_sub_router(host: str, config: HostConfig) -> str:
    """
    Name of the sub-application for `host`.

    Precedence when configured hosts coincide: UI, public or alias,
    internal, public API. Anything unmatched gets the UI.
    """
    host = host.lower()
    if not host:
        return UI
    if host == host_of(config.ui_host):
        return UI
    if host in (config.public_host, host_of(config.alias_host)):
        return PUBLIC
    if host == host_of(config.internal_host):
        return INTERNAL
    if host == host_of(config.public_api_host):
        return PUBLIC_API
    return UI


class HostRouter:
    """
    ASGI middleware that forwards HTTP traffic to the sub-app for the
    request's host. Lifespan events stay with the wrapped application.
    """

    def __init__(self, app: ASGIApp, sub_apps: Mapping[str, ASGIApp]):
        self.app = app
        self.sub_apps = dict(sub_apps)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        registry = scope["state"]["registry"]
        host = effective_host(Headers(scope=scope))
        name = select_sub_router(host, registry.snapshot())
        logger.debug("host %r -> %s router", host, name)
        await self.sub_apps[name](scope, receive, send)
