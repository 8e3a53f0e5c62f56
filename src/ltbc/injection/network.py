"""Applies http rules to the connections and requests of an interception backend."""

from __future__ import annotations

from typing import Any

from ltbc.interception.backend import (
    CONNECT,
    REQUEST,
    Connection,
    ConnectionInfo,
    InterceptedRequest,
    InterceptionBackend,
    ResponseHandle,
)
from ltbc.observability.logging_config import get_chaos_logger
from ltbc.rules.classifier import ClassifiedRules
from ltbc.schemas import FailReasonType


class NetworkInterceptionAdapter:
    """Standing ``connect``/``request`` handlers for one chaos decorator.

    Scoped rules are looked up by host first, then by full URL, and win over
    the global rule.  The global rule only ever delays.  Connections without a
    matching rule are left to other handlers, and failures are applied at
    request time only to connections this adapter claimed.
    """

    def __init__(self, rules: ClassifiedRules, backend: InterceptionBackend, *, logger: Any = None) -> None:
        self._rules = rules
        self._backend = backend
        self._log = get_chaos_logger(logger)
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def backend(self) -> InterceptionBackend:
        return self._backend

    def install(self) -> None:
        if self._installed:
            return
        self._backend.enable()
        self._backend.on(CONNECT, self.on_connect)
        self._backend.on(REQUEST, self.on_request)
        self._installed = True
        self._log.debug("chaos_network_installed", scopes=sorted(self._rules.scoped))

    def uninstall(self) -> None:
        if not self._installed:
            return
        self._backend.off(CONNECT, self.on_connect)
        self._backend.off(REQUEST, self.on_request)
        self._installed = False
        self._log.debug("chaos_network_uninstalled")

    def on_connect(self, connection: Connection, info: ConnectionInfo) -> None:
        counted = self._rules.lookup(info.host, info.href)
        if counted is not None:
            rule = counted.rule
            if not counted.state.tick():
                return
            if rule.delay is not None and rule.delay.value:
                connection.hold(rule.delay.value)
                self._log.info("chaos_connection_delayed", href=info.href, delay_ms=rule.delay.value)
            elif rule.fail is not None:
                connection.intercept(self)
            return

        global_rule = self._rules.global_rule
        if global_rule is None or not global_rule.state.tick():
            return
        delay = global_rule.rule.delay
        if delay is not None and delay.value:
            connection.hold(delay.value)
            self._log.info("chaos_connection_delayed", href=info.href, delay_ms=delay.value)

    def on_request(self, request: InterceptedRequest, response: ResponseHandle) -> None:
        if response.finished:
            return
        if request.connection is not None and not request.connection.is_claimed_by(self):
            return
        counted = self._rules.lookup(request.host, request.url)
        fail = counted.rule.fail if counted is not None else None
        if fail is None:
            return

        reason = fail.reason
        if reason.type == FailReasonType.HTTP_RESPONSE_CODE:
            response.status_code = reason.value
            response.end(f"{reason.value} Service Error")
        else:
            response.abort(reason.type)
        self._log.info("chaos_request_failed", host=request.host, reason=str(reason.type), value=reason.value)
