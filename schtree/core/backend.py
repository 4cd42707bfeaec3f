from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from schtree import config as sch_config

_PRECISIONS = {"float32": np.float32, "float64": np.float64}


def _float_dtype(precision: str) -> Any:
    try:
        return _PRECISIONS[precision]
    except KeyError as exc:
        raise ValueError(
            f"Unsupported precision '{precision}'. Expected one of {set(_PRECISIONS)}."
        ) from exc


@dataclass(frozen=True)
class TreeBackend:
    """Array module plus the default dtypes used for dense computations."""

    name: str
    xp: Any
    default_float: Any
    default_int: Any

    @classmethod
    def numpy(cls, *, precision: str = "float64") -> "TreeBackend":
        return cls(
            name="numpy",
            xp=np,
            default_float=_float_dtype(precision),
            default_int=np.int64,
        )

    @classmethod
    def jax(cls, *, precision: str = "float64") -> "TreeBackend":
        import jax
        import jax.numpy as jnp

        float_dtype = _float_dtype(precision)
        if precision == "float64":
            jax.config.update("jax_enable_x64", True)
        return cls(
            name="jax",
            xp=jnp,
            default_float=jnp.dtype(float_dtype),
            default_int=jnp.int64 if precision == "float64" else jnp.int32,
        )

    def asarray(self, value: Any, *, dtype: Any | None = None) -> Any:
        return self.xp.asarray(value, dtype=dtype)

    def to_numpy(self, value: Any) -> np.ndarray:
        return np.asarray(value)


def get_runtime_backend(*, precision: str | None = None) -> TreeBackend:
    runtime = sch_config.runtime_config()
    precision = precision or runtime.precision
    if runtime.backend == "jax":
        return TreeBackend.jax(precision=precision)
    return TreeBackend.numpy(precision=precision)


DEFAULT_BACKEND = TreeBackend.numpy()
