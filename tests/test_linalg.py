"""Unit tests for the SPD factorization used by both solves."""

import numpy as np
import pytest
import scipy.sparse as sp
from scipy.sparse.linalg import spsolve

from heatgeo.errors import NumericError
from heatgeo.linalg import SPDFactor, spd_solve
from heatgeo.operators import cotangent_laplacian


def tridiag(n):
    return sp.diags([-np.ones(n - 1), 2.0 * np.ones(n), -np.ones(n - 1)], [-1, 0, 1], format="csr")


def test_spd_solve_matches_spsolve():
    A = tridiag(50)
    b = np.linspace(-1.0, 1.0, 50)
    x = spd_solve(A, b)
    assert np.allclose(x, spsolve(A.tocsc(), b))
    assert np.allclose(A @ x, b)


def test_factor_reused_for_several_rhs():
    A = tridiag(20)
    fac = SPDFactor(A)
    for k in range(3):
        b = np.arange(20, dtype=float) ** k
        assert np.allclose(A @ fac.solve(b), b)


def test_indefinite_raises():
    A = sp.diags([1.0, -1.0, 2.0], format="csr")
    with pytest.raises(NumericError):
        SPDFactor(A)


def test_non_symmetric_raises():
    A = sp.csr_matrix(np.array([[2.0, 1.0], [0.0, 2.0]]))
    with pytest.raises(NumericError):
        SPDFactor(A)


def test_non_finite_raises():
    A = sp.diags([1.0, np.nan], format="csr")
    with pytest.raises(NumericError):
        SPDFactor(A)


def test_pivot_scale_for_stiff_spd_system():
    # I + K * (path Laplacian): smallest eigenvalue 1, largest pivot ~ K
    n = 6
    P = tridiag(n).tolil()
    P[0, 0] = P[n - 1, n - 1] = 1.0
    A = sp.identity(n, format="csr") + 1e13 * P.tocsr()
    with pytest.raises(NumericError):
        SPDFactor(A)

    x = SPDFactor(A, pivot_scale=1.0).solve(np.ones(n))
    assert np.allclose(x, 1.0, atol=1e-2)
    with pytest.raises(NumericError):
        SPDFactor(sp.diags([1.0, 0.0, 1.0], format="csr"), pivot_scale=1.0)


def test_rhs_length_mismatch_raises():
    fac = SPDFactor(tridiag(5))
    with pytest.raises(NumericError):
        fac.solve(np.ones(4))


def test_bare_laplacian_fails_regularized_succeeds(cube):
    L = cotangent_laplacian(cube.refresh())
    n = L.shape[0]
    with pytest.raises(NumericError):
        SPDFactor(-L, name="bare")

    A = -L + 1e-6 * sp.identity(n, format="csr")
    fac = SPDFactor(A, name="regularized")
    b = np.arange(n, dtype=float) - (n - 1) / 2.0
    x = fac.solve(b)
    assert np.allclose(A @ x, b)


def test_regularized_laplacian_spd_on_sphere(icosphere):
    L = cotangent_laplacian(icosphere.refresh())
    n = L.shape[0]
    SPDFactor(-L + 1e-6 * sp.identity(n, format="csr"))
