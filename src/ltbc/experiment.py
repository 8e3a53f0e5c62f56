"""Resolution of the active experiment name from ``LTBC_EXPERIMENT_NAME``."""
from __future__ import annotations

import structlog

from ltbc.config import Settings

logger = structlog.get_logger(__name__)

UNDEFINED = "__undefined__"


class ExperimentResolver:
    """Reads the experiment name once and serves the cached value until refreshed."""

    def __init__(self) -> None:
        self._name: str | None = None

    def resolve(self, force_refresh: bool = False) -> str:
        if not force_refresh and self._name is not None:
            return self._name
        # A fresh Settings picks up changes to the environment since the last read.
        self._name = Settings().experiment_name or UNDEFINED
        logger.debug("experiment_name_resolved", experiment=self._name)
        return self._name

    def reset(self) -> None:
        self._name = None


_resolver: ExperimentResolver | None = None


def get_experiment_resolver() -> ExperimentResolver:
    global _resolver
    if _resolver is None:
        _resolver = ExperimentResolver()
    return _resolver
