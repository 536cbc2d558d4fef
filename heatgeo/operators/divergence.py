# heatgeo/operators/divergence.py
import logging

import numpy as np

from heatgeo.operators.laplacian import cotan

_LOGGER = logging.getLogger(__name__)

# corner -> (left, right, opposite) edges as (head, tail) local indices
_LEGACY_EDGES = (
    ((2, 0), (1, 0), (1, 2)),
    ((0, 1), (2, 1), (0, 2)),
    ((1, 2), (0, 2), (0, 1)),
)


def _sanitize(div: np.ndarray) -> np.ndarray:
    bad = ~np.isfinite(div)
    if np.any(bad):
        _LOGGER.debug("divergence: %d non-finite entr(y/ies) replaced by 0", int(bad.sum()))
        div[bad] = 0.0
    return div


def divergence_vertex_from_face_field(V: np.ndarray, F: np.ndarray, X: np.ndarray) -> np.ndarray:
    """
    Integrated divergence of a piecewise-constant field X (one 3D vector per face),
    returned as a scalar per vertex:
      (div X)_i = 1/2 sum_f [ cot(theta_k) <e_ij, X_f> + cot(theta_j) <e_ik, X_f> ]
    where f = (i, j, k) in counter-clockwise order, e_ij = v_j - v_i and
    theta_j, theta_k are the angles at j and k.
    """
    n = V.shape[0]
    div = np.zeros(n, dtype=np.float64)
    for a in range(3):
        i, j, k = F[:, a], F[:, (a + 1) % 3], F[:, (a + 2) % 3]
        vi, vj, vk = V[i], V[j], V[k]
        e_ij = vj - vi
        e_ik = vk - vi
        cot_k = cotan(vi - vk, vj - vk)
        cot_j = cotan(vi - vj, vk - vj)
        with np.errstate(invalid="ignore"):
            contrib = 0.5 * (cot_k * (e_ij * X).sum(axis=1) + cot_j * (e_ik * X).sum(axis=1))
        np.add.at(div, i, contrib)
    return _sanitize(div)


def divergence_vertex_legacy(V: np.ndarray, F: np.ndarray, X: np.ndarray) -> np.ndarray:
    """
    Legacy divergence of a per-vertex field X (n, 3): for each vertex i and
    incident face, with left/right/opposite edges taken from the corner table,
      div_i += 1/2 (cot(e_l, e_o) <unit(e_r), X_i> + cot(e_r, e_o) <unit(e_l), X_i>)
    """
    n = V.shape[0]
    div = np.zeros(n, dtype=np.float64)
    P = V[F]
    for a, ((lh, lt), (rh, rt), (oh, ot)) in enumerate(_LEGACY_EDGES):
        el = P[:, lh] - P[:, lt]
        er = P[:, rh] - P[:, rt]
        eo = P[:, oh] - P[:, ot]
        cot_l = cotan(el, eo)
        cot_r = cotan(er, eo)
        Xi = X[F[:, a]]
        with np.errstate(divide="ignore", invalid="ignore"):
            el = el / np.linalg.norm(el, axis=1, keepdims=True)
            er = er / np.linalg.norm(er, axis=1, keepdims=True)
            contrib = 0.5 * (cot_l * (er * Xi).sum(axis=1) + cot_r * (el * Xi).sum(axis=1))
        np.add.at(div, F[:, a], contrib)
    return _sanitize(div)
