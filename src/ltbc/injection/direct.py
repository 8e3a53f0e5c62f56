"""Direct-call rule execution: delay, fail or replace a wrapped call."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Literal

from ltbc.errors import InjectedFaultError
from ltbc.observability.logging_config import get_chaos_logger
from ltbc.rules.classifier import CountedLambdaRule


class _NoValue:
    def __repr__(self) -> str:
        return "NO_VALUE"


# Outcome of a rule that did not produce a result. ``None`` is a real result.
NO_VALUE: Any = _NoValue()


class DirectCallExecutor:
    """Evaluates every lambda rule of an experiment for one invocation.

    All counters are ticked before any outcome is awaited, so each rule counts
    exactly once per call no matter which rule fails or answers first.  In
    ``parallel`` mode outcomes run concurrently; the first failure cancels the
    rest and propagates.  The answer is the first defined value in
    declaration order, or ``NO_VALUE`` when the target should run.
    """

    def __init__(
        self,
        rules: list[CountedLambdaRule],
        *,
        process: Literal["sequential", "parallel"] = "parallel",
        logger: Any = None,
    ) -> None:
        self._rules = rules
        self._process = process
        self._log = get_chaos_logger(logger)

    @property
    def rules(self) -> list[CountedLambdaRule]:
        return self._rules

    async def run(self, args: tuple, kwargs: dict[str, Any]) -> Any:
        if not self._rules:
            return NO_VALUE

        fires = [counted.state.tick() for counted in self._rules]

        if self._process == "sequential":
            outcomes = []
            for counted, fire in zip(self._rules, fires):
                outcomes.append(await self._evaluate(counted, fire, args, kwargs))
        else:
            tasks = [
                asyncio.ensure_future(self._evaluate(counted, fire, args, kwargs))
                for counted, fire in zip(self._rules, fires)
            ]
            try:
                outcomes = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise

        for outcome in outcomes:
            if outcome is not NO_VALUE:
                return outcome
        return NO_VALUE

    async def _evaluate(
        self,
        counted: CountedLambdaRule,
        fire: bool,
        args: tuple,
        kwargs: dict[str, Any],
    ) -> Any:
        rule = counted.rule
        if not fire:
            self._log.debug("chaos_rule_skipped", count=counted.state.count, every=rule.every)
            return NO_VALUE

        if rule.result is not None:
            value = rule.result(*args, **kwargs)
            if inspect.isawaitable(value):
                value = await value
            self._log.info("chaos_result_injected", count=counted.state.count)
            return value

        if rule.error is not None:
            produced = rule.error(*args, **kwargs)
            if inspect.isawaitable(produced):
                produced = await produced
            self._log.info("chaos_error_injected", count=counted.state.count, error=repr(produced))
            if isinstance(produced, BaseException):
                raise produced
            raise InjectedFaultError(produced)

        delay_ms = rule.delay or 0
        self._log.info("chaos_delay_injected", count=counted.state.count, delay_ms=delay_ms)
        await asyncio.sleep(delay_ms / 1000)
        return NO_VALUE
