

# heatgeo/operators/__init__.py
from .laplacian import cotangent_laplacian, cotan
from .mass_matrix import lumped_mass_barycentric, face_areas, edge_lengths
from .gradient import (
    gradient_scalar_per_face,
    gradient_per_vertex_legacy,
    per_face_grad_barycentric,
    normalized_flow,
)
from .divergence import divergence_vertex_from_face_field, divergence_vertex_legacy

__all__ = [
    "cotangent_laplacian",
    "cotan",
    "lumped_mass_barycentric",
    "face_areas",
    "edge_lengths",
    "gradient_scalar_per_face",
    "gradient_per_vertex_legacy",
    "per_face_grad_barycentric",
    "normalized_flow",
    "divergence_vertex_from_face_field",
    "divergence_vertex_legacy",
]
