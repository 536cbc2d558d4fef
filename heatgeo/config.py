# heatgeo/config.py
"""Run-time settings for the heat method and package-wide logging level."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

from heatgeo.errors import InputError

_LOGGER = logging.getLogger("heatgeo")

SCHEMES = ("face", "vertex")


def _parse_log_level(val: str | int | None, default: int = logging.WARNING) -> int:
    if val is None:
        return default
    if isinstance(val, int):
        return val
    lvl = getattr(logging, str(val).upper(), None)
    return lvl if isinstance(lvl, int) else default


def set_log_level(level: str | int = "WARNING") -> None:
    """Set the level of the ``heatgeo`` logger (name like "DEBUG" or an int)."""
    _LOGGER.setLevel(_parse_log_level(level))


set_log_level(os.getenv("HEATGEO_LOGLEVEL", "WARNING"))


def _as_float(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InputError(f"{name} must be a real number, got {value!r}") from exc


@dataclass(frozen=True)
class HeatMethodConfig:
    """
    Settings of one geodesic query.

    t_mult         : timestep multiplier m, t = m * h^2
    regularization : eps added to the diagonal of the Poisson system
    scheme         : "face"   -> per-face gradient (default)
                     "vertex" -> legacy per-vertex gradient/divergence
    pivot_rtol     : smallest accepted pivot, relative to the largest pivot
                     (Poisson) or to the largest mass entry (heat flow)
    """
    t_mult: float = 1.0
    regularization: float = 1e-6
    scheme: str = "face"
    pivot_rtol: float = 1e-12

    def __post_init__(self):
        if not _as_float("t_mult", self.t_mult) > 0.0:
            raise InputError(f"t_mult must be > 0, got {self.t_mult!r}")
        if not _as_float("regularization", self.regularization) > 0.0:
            raise InputError(f"regularization must be > 0, got {self.regularization!r}")
        if self.scheme not in SCHEMES:
            raise InputError(f"scheme must be one of {SCHEMES}, got {self.scheme!r}")
        if not 0.0 <= _as_float("pivot_rtol", self.pivot_rtol) < 1.0:
            raise InputError(f"pivot_rtol must be in [0, 1), got {self.pivot_rtol!r}")

    def with_overrides(self, **kwargs) -> "HeatMethodConfig":
        """Copy with every non-None keyword applied."""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **changes) if changes else self
