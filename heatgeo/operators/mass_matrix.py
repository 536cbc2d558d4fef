# heatgeo/operators/mass_matrix.py
import logging

import numpy as np
import scipy.sparse as sp

_LOGGER = logging.getLogger(__name__)


def edge_lengths(V: np.ndarray, F: np.ndarray) -> np.ndarray:
    """(m, 3) lengths of |V1-V0|, |V2-V0|, |V2-V1| per face."""
    p0, p1, p2 = V[F[:, 0]], V[F[:, 1]], V[F[:, 2]]
    return np.stack([
        np.linalg.norm(p1 - p0, axis=1),
        np.linalg.norm(p2 - p0, axis=1),
        np.linalg.norm(p2 - p1, axis=1),
    ], axis=1)


def face_areas(V: np.ndarray, F: np.ndarray) -> np.ndarray:
    """Triangle areas by Heron's formula on the three edge lengths."""
    E = edge_lengths(V, F)
    s = 0.5 * E.sum(axis=1)
    sq = s * (s - E[:, 0]) * (s - E[:, 1]) * (s - E[:, 2])
    return np.sqrt(np.maximum(sq, 0.0))


def lumped_mass_barycentric(V: np.ndarray, F: np.ndarray, area: np.ndarray = None) -> sp.csr_matrix:
    """
    Lumped (barycentric) mass matrix:
      M_ii = sum over incident faces of (area(face)/3).
    `area` is the per-face area array when the caller already has it.
    """
    if area is None:
        area = face_areas(V, F)

    n = V.shape[0]
    m = np.zeros(n, dtype=np.float64)
    np.add.at(m, F[:, 0], area / 3.0)
    np.add.at(m, F[:, 1], area / 3.0)
    np.add.at(m, F[:, 2], area / 3.0)

    empty = int(np.sum(m <= 0.0))
    if empty:
        _LOGGER.warning("mass matrix: %d vertex/vertices with zero dual area (isolated or degenerate)", empty)
    return sp.diags(m, format="csr")
