# heatgeo/operators/gradient.py
import numpy as np

from heatgeo.mesh import unit_face_normals
from heatgeo.operators.mass_matrix import face_areas


def opposite_edges(V: np.ndarray, F: np.ndarray) -> np.ndarray:
    """
    (m, 3, 3) counter-clockwise edge opposite each corner:
      corner 0 -> V2 - V1,  corner 1 -> V0 - V2,  corner 2 -> V1 - V0
    """
    p0, p1, p2 = V[F[:, 0]], V[F[:, 1]], V[F[:, 2]]
    return np.stack([p2 - p1, p0 - p2, p1 - p0], axis=1)


def per_face_grad_barycentric(V: np.ndarray, F: np.ndarray, normals=None, area=None):
    """
    Returns:
      G : (m, 3, 3) where G[f, a, :] = grad phi_a on face f (a in {0,1,2}),
          lying in the triangle plane.
    Formula:
      grad phi_a = (n x e_a) / (2 A)
      with n the unit normal, e_a the edge opposite corner a and A the area.
    """
    if normals is None:
        normals = unit_face_normals(V, F)
    if area is None:
        area = face_areas(V, F)

    E = opposite_edges(V, F)
    with np.errstate(divide="ignore", invalid="ignore"):
        inv2A = 1.0 / (2.0 * area)
        return np.cross(normals[:, None, :], E) * inv2A[:, None, None]


def gradient_scalar_per_face(V: np.ndarray, F: np.ndarray, u: np.ndarray, normals=None, area=None) -> np.ndarray:
    """
    Gradient of a piecewise-linear vertex function u.
    Returns:
      grad_u : (m,3) vector constant on each face.
    """
    G = per_face_grad_barycentric(V, F, normals, area)
    return np.einsum("fab,fa->fb", G, u[F])


def gradient_per_vertex_legacy(V: np.ndarray, F: np.ndarray, u: np.ndarray, normals=None, area=None) -> np.ndarray:
    """
    Legacy per-vertex field: for every vertex i and incident face f,
        grad_i += (n_f x unit(e_opp)) * u_i / (2 A_f)
    where e_opp is the edge opposite i. Only u_i enters, so this is not the
    gradient of u; kept for parity with the "vertex" scheme.
    Returns (n, 3).
    """
    if normals is None:
        normals = unit_face_normals(V, F)
    if area is None:
        area = face_areas(V, F)

    E = opposite_edges(V, F)
    out = np.zeros((V.shape[0], 3), dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        for a in range(3):
            e = E[:, a] / np.linalg.norm(E[:, a], axis=1, keepdims=True)
            g = np.cross(normals, e) * (u[F[:, a]] / (2.0 * area))[:, None]
            np.add.at(out, F[:, a], g)
    return out


def normalized_flow(grad: np.ndarray) -> np.ndarray:
    """X = -grad / |grad| row-wise; zero rows come out non-finite."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return -grad / np.linalg.norm(grad, axis=1, keepdims=True)
