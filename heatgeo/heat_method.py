# heatgeo/heat_method.py
from __future__ import annotations

import logging
import sys
import time

import numpy as np
import scipy.sparse as sp

from heatgeo.config import HeatMethodConfig
from heatgeo.errors import InputError
from heatgeo.linalg import spd_solve
from heatgeo.mesh import Mesh
from heatgeo.operators.laplacian import cotangent_laplacian
from heatgeo.operators.mass_matrix import edge_lengths, face_areas, lumped_mass_barycentric
from heatgeo.operators.gradient import (
    gradient_per_vertex_legacy,
    gradient_scalar_per_face,
    normalized_flow,
)
from heatgeo.operators.divergence import (
    divergence_vertex_from_face_field,
    divergence_vertex_legacy,
)

_LOGGER = logging.getLogger(__name__)


def typical_edge_length(V: np.ndarray, F: np.ndarray) -> float:
    """
    Mean per-face edge length: sum of semi-perimeters / (1.5 * #faces).
    Interior edges are counted once per adjacent face.
    """
    if F.shape[0] == 0:
        raise InputError("mesh has no faces")
    s = 0.5 * edge_lengths(V, F).sum(axis=1)
    return float(s.sum() / (1.5 * F.shape[0]))


def diffusion_timestep(h: float, t_mult: float = 1.0) -> float:
    """t = m * h^2."""
    try:
        t_mult = float(t_mult)
    except (TypeError, ValueError) as exc:
        raise InputError(f"t_mult must be a real number, got {t_mult!r}") from exc
    if not t_mult > 0.0:
        raise InputError(f"t_mult must be > 0, got {t_mult!r}")
    return float(t_mult) * h * h


def heat_flow(M: sp.spmatrix, L: sp.spmatrix, u0: np.ndarray, t: float, *, pivot_rtol: float = 1e-12) -> np.ndarray:
    """
    Solve (M - t L) u = u0 for the diffused heat u.

    -L is positive semi-definite, so every pivot of M - t L is bounded below
    by min(M) whatever t is; pivots are therefore measured against the scale
    of M rather than against the largest pivot, which grows with t.
    """
    A = (M - t * L).tocsr()
    m = M.diagonal()
    scale = float(m.max()) if m.size else None
    return spd_solve(A, u0, pivot_rtol=pivot_rtol, pivot_scale=scale, name="heat flow")


def poisson_distance(
    L: sp.spmatrix,
    div: np.ndarray,
    regularization: float = 1e-6,
    *,
    pivot_rtol: float = 1e-12,
) -> np.ndarray:
    """
    Solve L phi = div up to an additive constant.

    L is negative semi-definite with one constant null vector, so the system
    is factorized as (-L + eps I) phi = -div, which is SPD on a connected mesh.
    """
    n = L.shape[0]
    A = (-L + regularization * sp.identity(n, format="csr")).tocsr()
    return spd_solve(A, -np.asarray(div, dtype=np.float64), pivot_rtol=pivot_rtol, name="poisson")


def _initial_condition(mesh: Mesh, init_cond) -> np.ndarray:
    n = mesh.n_vertices
    try:
        u0 = np.asarray(init_cond, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InputError(f"initial condition is not a real vector: {exc}") from exc
    if u0.ndim != 1 or u0.shape[0] != n:
        raise InputError(f"initial condition must have shape ({n},), got {u0.shape}")
    if not np.all(np.isfinite(u0)):
        raise InputError("initial condition has non-finite values")
    return u0


def _sources_to_delta(mesh: Mesh, source_ids) -> tuple[np.ndarray, list[int]]:
    n = mesh.n_vertices
    try:
        ids = np.atleast_1d(np.asarray(source_ids))
    except (TypeError, ValueError) as exc:
        raise InputError(f"source ids must be vertex indices: {exc}") from exc
    if ids.ndim != 1:
        raise InputError(f"source ids must be a scalar or a flat list, got shape {ids.shape}")
    if ids.size == 0:
        raise InputError("at least one source vertex is required")
    if np.issubdtype(ids.dtype, np.floating):
        if not np.all(np.isfinite(ids) & (ids == np.round(ids))):
            raise InputError(f"source ids must be integral, got {ids.tolist()}")
    elif not np.issubdtype(ids.dtype, np.integer):
        raise InputError(f"source ids must be integers, got dtype {ids.dtype}")
    source_ids = [int(s) for s in ids]
    bad = [s for s in source_ids if not 0 <= s < n]
    if bad:
        raise InputError(f"source ids out of range [0, {n}): {bad}")

    delta = np.zeros(n, dtype=np.float64)
    delta[np.array(source_ids, dtype=int)] = 1.0
    return delta, source_ids


def _emit(name: str, value) -> None:
    if not _LOGGER.isEnabledFor(logging.INFO):
        return
    if sp.issparse(value):
        C = value.tocoo()
        body = "\n".join(f"({i},{j}) = {v:.17g}" for i, j, v in zip(C.row, C.col, C.data))
        _LOGGER.info("%s: sparse %dx%d, nnz=%d\n%s", name, C.shape[0], C.shape[1], C.nnz, body)
    elif np.ndim(value) == 0:
        _LOGGER.info("%s: %.17g", name, float(value))
    else:
        _LOGGER.info("%s: shape=%s\n%s", name, np.shape(value),
                     np.array2string(np.asarray(value), threshold=sys.maxsize, precision=17))


def _run_pipeline(mesh: Mesh, u0: np.ndarray, cfg: HeatMethodConfig, verbose: bool = False) -> dict:
    log = _emit if verbose else (lambda name, value: None)
    t_start = time.perf_counter()

    mesh.refresh()
    V, F = mesh.V, mesh.F
    area = face_areas(V, F)

    M = lumped_mass_barycentric(V, F, area)
    log("mass matrix", M)
    L = cotangent_laplacian(mesh)
    log("cotangent Laplacian", L)

    h = typical_edge_length(V, F)
    t = diffusion_timestep(h, cfg.t_mult)
    log("mean edge length", h)
    log("timestep", t)

    u = heat_flow(M, L, u0, t, pivot_rtol=cfg.pivot_rtol)
    log("heat flow", u)

    if cfg.scheme == "face":
        grad_u = gradient_scalar_per_face(V, F, u, mesh.face_normals, area)
        X = normalized_flow(grad_u)
        div = divergence_vertex_from_face_field(V, F, X)
    else:
        grad_u = gradient_per_vertex_legacy(V, F, u, mesh.face_normals, area)
        X = normalized_flow(grad_u)
        div = divergence_vertex_legacy(V, F, X)
    log("heat gradient", grad_u)
    log("normalized field", X)
    log("divergence", div)

    phi = poisson_distance(L, div, cfg.regularization, pivot_rtol=cfg.pivot_rtol)
    log("geodesic distance", phi)

    _LOGGER.debug("heat method: n=%d m=%d scheme=%s t=%.3e in %.3fs",
                  mesh.n_vertices, mesh.n_faces, cfg.scheme, t, time.perf_counter() - t_start)
    return {
        "phi": phi,
        "t": t,
        "h": h,
        "L": L,
        "M": M,
        "u": u,
        "grad_u": grad_u,
        "X": X,
        "div": div,
        "scheme": cfg.scheme,
    }


def heat_geodesic(
    mesh: Mesh,
    init_cond,
    t_mult: float | None = None,
    *,
    config: HeatMethodConfig | None = None,
) -> np.ndarray:
    """
    Geodesic distance from the heat sources in `init_cond` (length #vertices,
    usually one-hot or multi-hot) to every vertex.

    The result is defined up to an additive constant: subtract phi[source]
    or phi.min() for distances measured from zero.
    """
    cfg = (config or HeatMethodConfig()).with_overrides(t_mult=t_mult)
    u0 = _initial_condition(mesh, init_cond)
    return _run_pipeline(mesh, u0, cfg)["phi"]


def heat_geodesic_verbose(
    mesh: Mesh,
    init_cond,
    t_mult: float | None = None,
    *,
    config: HeatMethodConfig | None = None,
) -> np.ndarray:
    """
    Same as heat_geodesic, logging every intermediate operator and field at
    INFO level (enable with set_log_level("INFO") or HEATGEO_LOGLEVEL=INFO).
    """
    cfg = (config or HeatMethodConfig()).with_overrides(t_mult=t_mult)
    u0 = _initial_condition(mesh, init_cond)
    return _run_pipeline(mesh, u0, cfg, verbose=True)["phi"]


def heat_geodesic_from_sources(
    mesh: Mesh,
    source_ids,
    t_mult: float | None = None,
    *,
    config: HeatMethodConfig | None = None,
    verbose: bool = False,
):
    """
    Geodesic distance from one vertex id or a list of ids.
    Returns (phi, info) where info holds the timestep and every intermediate.
    """
    cfg = (config or HeatMethodConfig()).with_overrides(t_mult=t_mult)
    delta, sources = _sources_to_delta(mesh, source_ids)

    info = _run_pipeline(mesh, delta, cfg, verbose=verbose)
    phi = info.pop("phi")
    info["t_mult"] = cfg.t_mult
    info["sources"] = sources
    info["delta"] = delta
    return phi, info
