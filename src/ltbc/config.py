from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Self

import structlog
import yaml
from pydantic import TypeAdapter, ValidationError, model_validator
from pydantic_settings import BaseSettings

from ltbc.errors import ChaosConfigurationError
from ltbc.schemas import Experiment

logger = structlog.get_logger(__name__)

_EXPERIMENTS_ADAPTER = TypeAdapter(dict[str, Experiment])


class Settings(BaseSettings):
    model_config = {"env_prefix": "LTBC_", "extra": "ignore"}

    enabled: bool = False
    experiment_name: str | None = None
    experiments_file: Path | None = None
    log_level: str = "INFO"
    json_logs: bool = False

    @model_validator(mode="after")
    def _warn_on_inert_setup(self) -> Self:
        if self.enabled and not self.experiment_name:
            logger.warning(
                "LTBC_ENABLED is set but LTBC_EXPERIMENT_NAME is not; no experiment will run"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ChaosConfigurationError(
            f"Cannot read experiments file {path}: {exc}", details={"path": str(path)}
        ) from exc


def load_experiments(path: str | Path) -> dict[str, Experiment]:
    """Load experiments from a YAML file.

    The file maps experiment names to ``{name, rules}`` bodies, optionally
    nested under a top-level ``experiments`` key.  ``name`` defaults to the
    mapping key.  Only data-only rules make sense here: ``http`` rules and
    ``lambda`` rules with ``delay``/``every``.
    """
    path = Path(path)
    raw = _read_yaml(path)
    if "experiments" in raw and isinstance(raw["experiments"], dict):
        raw = raw["experiments"]
    if not isinstance(raw, dict):
        raise ChaosConfigurationError(
            f"Experiments file {path} must contain a mapping", details={"path": str(path)}
        )

    for key, body in raw.items():
        if isinstance(body, dict):
            body.setdefault("name", key)

    try:
        experiments = _EXPERIMENTS_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise ChaosConfigurationError(
            f"Invalid experiments file {path}",
            details={"path": str(path), "errors": exc.errors(include_input=False)},
        ) from exc

    logger.info("experiments_loaded", path=str(path), count=len(experiments))
    return experiments
