# heatgeo/errors.py
"""Exceptions raised by the heat-method pipeline."""


class HeatMethodError(Exception):
    """Base class for every failure reported by heatgeo."""


class InputError(HeatMethodError, ValueError):
    """Caller-supplied data does not match the mesh (length, range, sign)."""


class TopologyError(HeatMethodError, ValueError):
    """Mesh connectivity cannot be turned into a consistent half-edge structure."""


class NumericError(HeatMethodError, RuntimeError):
    """A linear system is not SPD, or an operator/solution is not finite."""
