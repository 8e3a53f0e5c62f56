"""Structlog configuration for ltbc.

Call ``configure_logging()`` once in the test or staging harness that runs
the experiments.  It reads ``LTBC_LOG_LEVEL``, ``LTBC_JSON_LOGS`` and
``LTBC_EXPERIMENT_NAME`` so every event from the injection engine is tagged
with the experiment that produced it.
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from ltbc.config import Settings, get_settings


def _tag_experiment(experiment: str | None) -> structlog.types.Processor:
    def add_experiment(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        if experiment:
            event_dict.setdefault("experiment", experiment)
        return event_dict

    return add_experiment


def configure_logging(
    settings: Settings | None = None,
    *,
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog processors for the whole process.

    Parameters
    ----------
    settings:
        Source of the defaults; ``get_settings()`` when omitted.
    json_output:
        Overrides ``settings.json_logs``.  JSON for CI log collectors,
        coloured console output for local runs.
    log_level:
        Overrides ``settings.log_level`` (DEBUG, INFO, WARNING, ERROR).
        Unknown names fall back to INFO.
    """
    settings = settings or get_settings()
    if json_output is None:
        json_output = settings.json_logs
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _tag_experiment(settings.experiment_name),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.UnicodeDecoder(),
    ]
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


class _WarnAlias:
    """Gives loggers that only define ``warn`` a ``warning`` method."""

    def __init__(self, logger: Any) -> None:
        self._logger = logger

    def __getattr__(self, name: str) -> Any:
        if name == "warning":
            name = "warn"
        return getattr(self._logger, name)


def get_chaos_logger(logger: Any = None) -> Any:
    """Return a structlog logger for an optional user-supplied logger.

    ``None`` gives the package logger. Structlog loggers are used as they are.
    Anything else (a stdlib ``logging.Logger`` or any object with
    ``info``/``warn``/``error``/``debug``) is wrapped so that event-style
    calls are rendered to a single ``key=value`` message.
    """
    if logger is None:
        return structlog.get_logger("ltbc")
    if hasattr(logger, "bind"):
        return logger
    if not hasattr(logger, "warning") and hasattr(logger, "warn"):
        logger = _WarnAlias(logger)
    return structlog.wrap_logger(
        logger,
        processors=[structlog.processors.KeyValueRenderer(key_order=["event"])],
        wrapper_class=structlog.BoundLogger,
    )
