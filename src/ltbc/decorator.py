"""Public entry point: build a chaos decorator for async callables.

Example::

    with_chaos = chaos(ChaosConfig(enabled=True, experiments={...}))

    @with_chaos
    async def fetch_quote(symbol: str) -> Quote:
        ...

The experiment is picked from ``LTBC_EXPERIMENT_NAME``.  Rules are classified
once, when :func:`chaos` is called; network rules are installed on the
interception backend at the same time and stay active until
:meth:`ChaosDecorator.uninstall`.
"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

from ltbc.experiment import UNDEFINED, get_experiment_resolver
from ltbc.injection.direct import NO_VALUE, DirectCallExecutor
from ltbc.injection.network import NetworkInterceptionAdapter
from ltbc.interception.httpx_backend import get_interceptor
from ltbc.observability.logging_config import get_chaos_logger
from ltbc.rules.classifier import ClassifiedRules, classify_rules
from ltbc.schemas import ChaosConfig

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class ChaosDecorator:
    """Wraps async callables with the rules of one experiment.

    Without an experiment it returns targets unchanged.
    """

    def __init__(
        self,
        *,
        experiment: str | None = None,
        rules: ClassifiedRules | None = None,
        executor: DirectCallExecutor | None = None,
        network: NetworkInterceptionAdapter | None = None,
    ) -> None:
        self.experiment = experiment
        self.rules = rules
        self.network = network
        self._executor = executor

    @property
    def active(self) -> bool:
        return self._executor is not None

    def __call__(self, fn: F) -> F:
        if self._executor is None:
            return fn
        executor = self._executor

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            outcome = await executor.run(args, kwargs)
            if outcome is not NO_VALUE:
                return outcome
            return await fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    def uninstall(self) -> None:
        if self.network is not None:
            self.network.uninstall()


def chaos(config: ChaosConfig | None = None) -> ChaosDecorator:
    config = config or ChaosConfig()
    if not config.enabled:
        return ChaosDecorator()

    resolver = config.resolver or get_experiment_resolver()
    name = resolver.resolve(config.auto_refresh_experiment_name)
    if name == UNDEFINED or config.experiments is None:
        return ChaosDecorator()

    log = get_chaos_logger(config.logger)
    experiment = config.experiments.get(name)
    if experiment is None:
        log.warning("chaos_experiment_not_configured", experiment=name)

    rules = classify_rules(
        experiment.rules if experiment is not None else None,
        strict=config.strict,
        logger=config.logger,
    )

    network = None
    if rules.has_network_rules:
        network = NetworkInterceptionAdapter(
            rules, config.interceptor or get_interceptor(), logger=config.logger
        )
        network.install()

    executor = DirectCallExecutor(rules.direct, process=config.process, logger=config.logger)
    log.info("chaos_experiment_active", experiment=name, process=config.process)
    return ChaosDecorator(experiment=name, rules=rules, executor=executor, network=network)
