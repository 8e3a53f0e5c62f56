"""Pydantic v2 schemas for ltbc experiments and chaos configuration.

Rules form a discriminated union on ``type``:

* ``"lambda"`` rules act on the wrapped call itself (delay, error, result).
* ``"http"`` rules act on outbound requests seen by the interception backend,
  scoped by ``host``, ``href`` or, when neither is set, applied globally.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class FailReasonType(StrEnum):
    CLIENT_SOCKET_HANG_UP = "CLIENT_SOCKET_HANG_UP"
    SERVER_SOCKET_HANG_UP = "SERVER_SOCKET_HANG_UP"
    HTTP_RESPONSE_CODE = "HTTP_RESPONSE_CODE"


class FailReason(BaseModel):
    type: FailReasonType
    value: int


class FailSpec(BaseModel):
    reason: FailReason


class DelaySpec(BaseModel):
    value: float = Field(..., ge=0)
    # Accepted for compatibility with existing experiment files; never applied.
    range: float | None = Field(default=None, ge=0)


class LambdaRule(BaseModel):
    type: Literal["lambda"] = "lambda"
    delay: float | None = Field(default=None, ge=0)
    every: PositiveInt | None = None
    error: Callable[..., Any] | None = None
    result: Callable[..., Any] | None = None


class RequestRule(BaseModel):
    type: Literal["http"] = "http"
    host: str | None = None
    href: str | None = None
    every: PositiveInt | None = None
    delay: DelaySpec | None = None
    fail: FailSpec | None = None

    @property
    def scope_key(self) -> str | None:
        return self.host if self.host is not None else self.href

    @property
    def is_global(self) -> bool:
        return self.host is None and self.href is None


Rule = Annotated[LambdaRule | RequestRule, Field(discriminator="type")]


class Experiment(BaseModel):
    name: str
    rules: list[Rule] = Field(default_factory=list)


class ChaosConfig(BaseModel):
    """Everything :func:`ltbc.chaos` needs to build a decorator.

    ``logger`` may be any object exposing ``info``/``warning``/``error``/``debug``
    (a stdlib logger or a structlog logger). ``interceptor`` is the network
    interception backend; the shared :class:`~ltbc.interception.httpx_backend.HttpxInterceptor`
    is used when it is omitted and the experiment has network rules.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    enabled: bool = False
    auto_refresh_experiment_name: bool = False
    logger: Any = None
    experiments: dict[str, Experiment] | None = None
    process: Literal["sequential", "parallel"] = "parallel"
    interceptor: Any = None
    resolver: Any = None
    strict: bool = False

    @classmethod
    def from_settings(cls, settings: Any = None, **overrides: Any) -> ChaosConfig:
        """Build a config from ``LTBC_*`` settings, loading the experiments file if set."""
        from ltbc.config import get_settings, load_experiments

        settings = settings or get_settings()
        values: dict[str, Any] = {"enabled": settings.enabled}
        if settings.experiments_file is not None:
            values["experiments"] = load_experiments(settings.experiments_file)
        values.update(overrides)
        return cls(**values)
