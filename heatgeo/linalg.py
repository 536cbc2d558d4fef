# heatgeo/linalg.py
"""
Symmetric positive-definite sparse factorization.

SciPy has no sparse Cholesky, so the factorization is a SuperLU LU run in
symmetric mode with diagonal pivoting only: for P A P^T = L U with A symmetric,
U = D L^T and A is positive definite iff every pivot in D is positive.
"""
from __future__ import annotations

import logging

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from heatgeo.errors import NumericError

_LOGGER = logging.getLogger(__name__)


class SPDFactor:
    """
    One-shot factorization of a sparse symmetric positive-definite matrix.

    Raises NumericError when A is not square, not finite, not symmetric,
    or not positive definite (including the rank-deficient case, detected as
    a pivot below ``pivot_rtol * pivot_scale``).

    ``pivot_scale`` defaults to the largest pivot. Pass a known lower bound of
    the spectrum instead when A = B + K with B positive definite and K large
    positive semi-definite, where the pivot spread grows with |K| / |B|.
    """

    def __init__(
        self,
        A: sp.spmatrix,
        *,
        pivot_rtol: float = 1e-12,
        pivot_scale: float | None = None,
        name: str = "system",
    ):
        self.name = name
        A = sp.csc_matrix(A, dtype=np.float64)
        n, k = A.shape
        if n != k:
            raise NumericError(f"{name}: matrix must be square, got {A.shape}")
        if not np.all(np.isfinite(A.data)):
            raise NumericError(f"{name}: matrix has non-finite entries")
        scale = float(abs(A).max()) if A.nnz > 0 else 0.0
        asym = float(abs(A - A.T).max()) if A.nnz > 0 else 0.0
        if asym > 1e-12 * max(scale, 1.0):
            raise NumericError(f"{name}: matrix is not symmetric (max |A - A^T| = {asym:.3e})")

        try:
            lu = spla.splu(
                A,
                permc_spec="MMD_AT_PLUS_A",
                diag_pivot_thresh=0.0,
                options=dict(SymmetricMode=True),
            )
        except RuntimeError as exc:
            raise NumericError(f"{name}: factorization failed ({exc})") from exc

        # an off-diagonal pivot only happens on a zero diagonal pivot
        if not np.array_equal(lu.perm_r, lu.perm_c):
            raise NumericError(f"{name}: matrix is not positive definite (zero pivot)")

        pivots = lu.U.diagonal()
        if not np.all(np.isfinite(pivots)):
            raise NumericError(f"{name}: factorization produced non-finite pivots")
        pmax = float(np.abs(pivots).max()) if pivots.size else 0.0
        pmin = float(pivots.min()) if pivots.size else 0.0
        ref = pmax if pivot_scale is None else float(pivot_scale)
        if pivots.size == 0 or pmin <= pivot_rtol * ref:
            raise NumericError(
                f"{name}: matrix is not positive definite "
                f"(min pivot {pmin:.3e}, max pivot {pmax:.3e})"
            )

        _LOGGER.debug("%s: factorized n=%d nnz=%d (pivots in [%.3e, %.3e])",
                      name, n, A.nnz, pmin, pmax)
        self.shape = A.shape
        self._lu = lu

    def solve(self, b: np.ndarray) -> np.ndarray:
        b = np.asarray(b, dtype=np.float64)
        if b.shape[0] != self.shape[0]:
            raise NumericError(f"{self.name}: rhs has length {b.shape[0]}, expected {self.shape[0]}")
        x = self._lu.solve(b)
        if not np.all(np.isfinite(x)):
            raise NumericError(f"{self.name}: solution is not finite")
        return x


def spd_solve(
    A: sp.spmatrix,
    b: np.ndarray,
    *,
    pivot_rtol: float = 1e-12,
    pivot_scale: float | None = None,
    name: str = "system",
) -> np.ndarray:
    """Factorize A, solve A x = b once, drop the factorization."""
    return SPDFactor(A, pivot_rtol=pivot_rtol, pivot_scale=pivot_scale, name=name).solve(b)
