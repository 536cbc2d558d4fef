# heatgeo/operators/laplacian.py
import logging

import numpy as np
import scipy.sparse as sp

from heatgeo.errors import NumericError

_LOGGER = logging.getLogger(__name__)


def cotan(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Row-wise cot of the angle between a and b: <a, b> / |a x b|."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return (a * b).sum(axis=1) / np.linalg.norm(np.cross(a, b), axis=1)


def cotangent_laplacian(mesh) -> sp.csr_matrix:
    """
    Symmetric cotangent Laplacian (negative semi-definite convention).

    Every half-edge (vp -> vo) of a vertex's one-ring gets
        L[vp, vo] = (cot(angle at vl) + cot(angle at vr)) / 2
    with vl the vertex opposite in its own face and vr the one opposite in
    the twin's face. A boundary half-edge has no twin: the missing side
    contributes 0 and the weight is mirrored to L[vo, vp].
    Diagonal: L[v, v] = -sum_j L[v, j], so every row sums to zero.
    """
    V, F = mesh.V, mesh.F
    n = V.shape[0]
    twin = mesh.halfedge_twin

    vp = F.reshape(-1)
    vo = F[:, [1, 2, 0]].reshape(-1)
    vl = F[:, [2, 0, 1]].reshape(-1)

    # far edge (vl -> vo), near edge (vl -> vp)
    cot_h = cotan(V[vo] - V[vl], V[vp] - V[vl])

    paired = twin >= 0
    cot_r = np.zeros_like(cot_h)
    cot_r[paired] = cot_h[twin[paired]]
    w = 0.5 * (cot_h + cot_r)

    bad = ~np.isfinite(w)
    if np.any(bad):
        n_faces = np.unique(np.concatenate([np.flatnonzero(bad) // 3,
                                            twin[bad & paired] // 3])).size
        raise NumericError(
            f"cotangent Laplacian: {int(bad.sum())} non-finite weight(s), "
            f"from ~{n_faces} degenerate face(s)"
        )

    lone = ~paired
    rows = np.concatenate([vp, vo[lone]])
    cols = np.concatenate([vo, vp[lone]])
    data = np.concatenate([w, w[lone]])
    W = sp.coo_matrix((data, (rows, cols)), shape=(n, n)).tocsr()

    d = np.asarray(W.sum(axis=1)).ravel()
    L = (W - sp.diags(d, format="csr")).tocsr()
    _LOGGER.debug("cotangent Laplacian: n=%d nnz=%d boundary edges=%d", n, L.nnz, int(lone.sum()))
    return L
