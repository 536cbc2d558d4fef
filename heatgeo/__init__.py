"""Geodesic distance on triangle meshes with the heat method."""
from .config import HeatMethodConfig, set_log_level
from .errors import HeatMethodError, InputError, NumericError, TopologyError
from .heat_method import (
    heat_geodesic,
    heat_geodesic_from_sources,
    heat_geodesic_verbose,
    typical_edge_length,
)
from .mesh import Mesh

__version__ = "0.1.0"

__all__ = [
    "HeatMethodConfig",
    "set_log_level",
    "HeatMethodError",
    "InputError",
    "NumericError",
    "TopologyError",
    "heat_geodesic",
    "heat_geodesic_from_sources",
    "heat_geodesic_verbose",
    "typical_edge_length",
    "Mesh",
]
