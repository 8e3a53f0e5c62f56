"""Chaos-engineering decorator for async callables."""

from ltbc.config import Settings, get_settings, load_experiments
from ltbc.decorator import ChaosDecorator, chaos
from ltbc.errors import (
    ChaosConfigurationError,
    InjectedFaultError,
    InterceptionError,
    LtbcError,
)
from ltbc.experiment import UNDEFINED, ExperimentResolver
from ltbc.interception.httpx_backend import HttpxInterceptor, get_interceptor
from ltbc.observability.logging_config import configure_logging
from ltbc.schemas import (
    ChaosConfig,
    DelaySpec,
    Experiment,
    FailReason,
    FailReasonType,
    FailSpec,
    LambdaRule,
    RequestRule,
)

__all__ = [
    "UNDEFINED",
    "ChaosConfig",
    "ChaosConfigurationError",
    "ChaosDecorator",
    "DelaySpec",
    "Experiment",
    "ExperimentResolver",
    "FailReason",
    "FailReasonType",
    "FailSpec",
    "HttpxInterceptor",
    "InjectedFaultError",
    "InterceptionError",
    "LambdaRule",
    "LtbcError",
    "RequestRule",
    "Settings",
    "chaos",
    "configure_logging",
    "get_interceptor",
    "get_settings",
    "load_experiments",
]
