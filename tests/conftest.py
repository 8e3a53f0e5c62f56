from __future__ import annotations

import httpx
import pytest

from ltbc.experiment import ExperimentResolver
from ltbc.interception.httpx_backend import HttpxInterceptor
from ltbc.schemas import ChaosConfig, Experiment

EXPERIMENT = "slowLambda"


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    from ltbc.config import get_settings

    for var in (
        "LTBC_EXPERIMENT_NAME",
        "LTBC_ENABLED",
        "LTBC_EXPERIMENTS_FILE",
        "LTBC_LOG_LEVEL",
        "LTBC_JSON_LOGS",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def interceptor():
    return HttpxInterceptor()


@pytest.fixture
def resolver():
    return ExperimentResolver()


@pytest.fixture
def make_config(monkeypatch, interceptor, resolver):
    """Enabled config running *rules* as the active experiment."""

    def _make(rules, name: str = EXPERIMENT, **overrides) -> ChaosConfig:
        monkeypatch.setenv("LTBC_EXPERIMENT_NAME", name)
        values = {
            "enabled": True,
            "auto_refresh_experiment_name": True,
            "interceptor": interceptor,
            "resolver": resolver,
            "experiments": {name: Experiment(name=name, rules=rules)},
        }
        values.update(overrides)
        return ChaosConfig(**values)

    return _make


@pytest.fixture
def downstream():
    """Fake upstream servers: every host answers 200 ``okay``."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="okay")

    transport = httpx.MockTransport(handler)
    transport.seen = seen  # type: ignore[attr-defined]
    return transport
