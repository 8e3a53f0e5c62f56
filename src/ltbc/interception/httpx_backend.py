"""Interception backend for httpx clients.

Clients opt in by using :meth:`HttpxInterceptor.transport` (or
:meth:`HttpxInterceptor.client`).  While the interceptor is disabled the
transport forwards every request to the wrapped transport unchanged.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from ltbc.errors import InterceptionError
from ltbc.interception.backend import (
    CONNECT,
    REQUEST,
    UNMATCHED_BODY,
    UNMATCHED_STATUS,
    Connection,
    ConnectionInfo,
    EventEmitter,
    InterceptedRequest,
    ResponseHandle,
)
from ltbc.schemas import FailReasonType

logger = structlog.get_logger(__name__)


def connection_info(url: httpx.URL) -> ConnectionInfo:
    return ConnectionInfo(
        protocol=f"{url.scheme}:",
        hostname=url.host,
        host=url.host,
        href=str(url),
        port=url.port,
        path=url.path,
    )


class HttpxInterceptor(EventEmitter):
    def __init__(self) -> None:
        super().__init__()
        self._enabled = False

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def transport(self, inner: httpx.AsyncBaseTransport | None = None) -> InterceptingTransport:
        return InterceptingTransport(self, inner or httpx.AsyncHTTPTransport())

    def client(self, transport: httpx.AsyncBaseTransport | None = None, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport(transport), **kwargs)


class InterceptingTransport(httpx.AsyncBaseTransport):
    def __init__(self, backend: HttpxInterceptor, inner: httpx.AsyncBaseTransport) -> None:
        self._backend = backend
        self._inner = inner

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not self._backend.is_enabled:
            return await self._inner.handle_async_request(request)

        connection = Connection(connection_info(request.url))
        self._backend.emit(CONNECT, connection, connection.info)

        if connection.delay:
            logger.debug("connection_delayed", href=connection.info.href, delay_ms=connection.delay)
            await asyncio.sleep(connection.delay / 1000)
        if not connection.intercepted:
            return await self._inner.handle_async_request(request)

        intercepted = InterceptedRequest(
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers),
            content=await request.aread(),
            connection=connection,
        )
        response = ResponseHandle()
        self._backend.emit(REQUEST, intercepted, response)

        if not response.finished:
            logger.warning("chaos_request_without_failure_rule", host=intercepted.host, url=intercepted.url)
            response.status_code = UNMATCHED_STATUS
            response.end(UNMATCHED_BODY)
        if response.aborted == FailReasonType.SERVER_SOCKET_HANG_UP:
            raise httpx.RemoteProtocolError(
                "Server disconnected without sending a response.", request=request
            )
        if response.aborted == FailReasonType.CLIENT_SOCKET_HANG_UP:
            raise httpx.ReadTimeout("Client gave up waiting for a response.", request=request)
        if not 100 <= response.status_code <= 599:
            raise InterceptionError(
                f"Intercepted request to {intercepted.url} was answered with invalid status {response.status_code}",
                details={"url": intercepted.url, "status_code": response.status_code},
            )
        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            content=response.body,
            request=request,
        )

    async def aclose(self) -> None:
        await self._inner.aclose()


_interceptor: HttpxInterceptor | None = None


def get_interceptor() -> HttpxInterceptor:
    global _interceptor
    if _interceptor is None:
        _interceptor = HttpxInterceptor()
    return _interceptor
