from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

_SUPPORTED_BACKENDS = {"numpy", "jax"}
_SUPPORTED_PRECISION = {"float32", "float64"}

DEFAULT_LEAF_FRACTION = 0.01
DEFAULT_MIN_LEAF_SIZE = 10


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _parse_float(raw: str | None, *, default: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float value '{raw}'") from exc


def _normalise_precision(value: str | None) -> str:
    if value is None:
        return "float64"
    value = value.strip().lower()
    if value not in _SUPPORTED_PRECISION:
        raise ValueError(f"Unsupported precision '{value}'. Expected one of {_SUPPORTED_PRECISION}.")
    return value


def _infer_backend_from_env() -> str:
    backend = os.getenv("SCHTREE_BACKEND", "numpy").strip().lower()
    if backend not in _SUPPORTED_BACKENDS:
        raise ValueError(f"Unsupported backend '{backend}'. Expected one of {_SUPPORTED_BACKENDS}.")
    return backend


def _leaf_fraction_from_env() -> float:
    fraction = _parse_float(os.getenv("SCHTREE_LEAF_FRACTION"), default=DEFAULT_LEAF_FRACTION)
    if not 0.0 < fraction <= 1.0:
        raise ValueError(f"SCHTREE_LEAF_FRACTION must lie in (0, 1], got {fraction}.")
    return fraction


def _min_leaf_size_from_env() -> int:
    size = _parse_optional_int(os.getenv("SCHTREE_MIN_LEAF_SIZE"))
    if size is None:
        return DEFAULT_MIN_LEAF_SIZE
    if size < 1:
        raise ValueError(f"SCHTREE_MIN_LEAF_SIZE must be positive, got {size}.")
    return size


def _workers_from_env() -> int | None:
    workers = _parse_optional_int(os.getenv("SCHTREE_WORKERS"))
    if workers is not None and workers < 1:
        raise ValueError(f"SCHTREE_WORKERS must be positive, got {workers}.")
    return workers


@dataclass(frozen=True)
class RuntimeConfig:
    backend: str
    precision: str
    enable_numba: bool
    log_level: str
    workers: int | None
    leaf_fraction: float
    min_leaf_size: int

    @property
    def jax_enable_x64(self) -> bool:
        return self.precision == "float64"


def _apply_jax_runtime_flags(config: RuntimeConfig) -> None:
    if config.backend != "jax":
        return
    import jax

    jax.config.update("jax_enable_x64", config.jax_enable_x64)


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("schtree")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    backend = _infer_backend_from_env()
    precision = _normalise_precision(os.getenv("SCHTREE_PRECISION"))
    enable_numba = _bool_from_env(os.getenv("SCHTREE_ENABLE_NUMBA"), default=False)
    log_level = os.getenv("SCHTREE_LOG_LEVEL", "INFO").upper()

    config = RuntimeConfig(
        backend=backend,
        precision=precision,
        enable_numba=enable_numba,
        log_level=log_level,
        workers=_workers_from_env(),
        leaf_fraction=_leaf_fraction_from_env(),
        min_leaf_size=_min_leaf_size_from_env(),
    )
    _apply_jax_runtime_flags(config)
    _configure_logging(config.log_level)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()
