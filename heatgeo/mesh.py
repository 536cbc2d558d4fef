# heatgeo/mesh.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np
import trimesh

from heatgeo.errors import TopologyError

_LOGGER = logging.getLogger(__name__)


def unit_face_normals(V: np.ndarray, F: np.ndarray) -> np.ndarray:
    """(m, 3) unit normals following the winding of F, zero on degenerate faces."""
    N = np.cross(V[F[:, 1]] - V[F[:, 0]], V[F[:, 2]] - V[F[:, 0]])
    nn = np.linalg.norm(N, axis=1)
    ok = nn > 1e-300
    normals = np.zeros_like(N)
    normals[ok] = N[ok] / nn[ok, None]
    return normals


@dataclass
class Mesh:
    """
    Triangle mesh with the adjacency the heat method needs.

    V : (n, 3) float64 vertex positions
    F : (m, 3) int64 consistently oriented triangles

    Half-edge h = 3*f + k runs from F[f, k] to F[f, (k+1) % 3]; the derived
    arrays (twins, vertex-face incidence, unit face normals) are rebuilt by
    ``refresh()`` and must be refreshed again after V or F change.
    """
    V: np.ndarray
    F: np.ndarray

    _twin: np.ndarray | None = field(default=None, init=False, repr=False, compare=False)
    _vf_ptr: np.ndarray | None = field(default=None, init=False, repr=False, compare=False)
    _vf_corner: np.ndarray | None = field(default=None, init=False, repr=False, compare=False)
    _normals: np.ndarray | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.V = np.asarray(self.V, dtype=np.float64)
        self.F = np.asarray(self.F, dtype=np.int64)
        if self.V.ndim != 2 or self.V.shape[1] != 3:
            raise ValueError(f"V must have shape (n, 3), got {self.V.shape}")
        if self.F.ndim != 2 or self.F.shape[1] != 3:
            raise ValueError(f"F must have shape (m, 3), got {self.F.shape}")

    @classmethod
    def load(
        cls,
        path: str,
        process: bool = True,
        recenter: bool = True,
        rescale_unit: bool = True,
    ) -> "Mesh":
        """
        Load a surface mesh via trimesh, ensure triangles, recenter at origin,
        and rescale to unit size (so all models have comparable scale).
        """
        if not os.path.exists(path):
            raise FileNotFoundError(path)

        obj = trimesh.load(path, process=process)

        if isinstance(obj, trimesh.Scene):
            if len(obj.geometry) == 0:
                raise ValueError("Scene contains no geometry.")
            tm = trimesh.util.concatenate(tuple(obj.dump()))
        elif isinstance(obj, trimesh.Trimesh):
            tm = obj
        else:
            raise TypeError(f"Unsupported type from trimesh.load: {type(obj)}")

        if tm.faces is None or len(tm.faces) == 0:
            raise ValueError("Loaded geometry has no faces (is it a point cloud?)")

        translation = -tm.centroid if recenter else np.zeros(3)
        if rescale_unit:
            if tm.scale == 0:
                raise ValueError("Degenerate geometry with zero scale.")
            scale = 1.0 / float(tm.scale)
        else:
            scale = 1.0

        _LOGGER.debug("loaded %s: %d vertices, %d faces", path, len(tm.vertices), len(tm.faces))
        return cls(V=(tm.vertices + translation) * scale, F=tm.faces)

    @classmethod
    def from_trimesh(cls, tm: trimesh.Trimesh) -> "Mesh":
        """Wrap an in-memory trimesh.Trimesh (no processing, indices kept)."""
        return cls(V=np.asarray(tm.vertices), F=np.asarray(tm.faces))

    # ------------------------------------------------------------------
    # sizes
    # ------------------------------------------------------------------
    @property
    def n_vertices(self) -> int:
        return int(self.V.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.F.shape[0])

    # ------------------------------------------------------------------
    # adjacency
    # ------------------------------------------------------------------
    def refresh(self) -> "Mesh":
        """Recompute half-edge twins, vertex-face incidence and unit face normals."""
        n, m = self.n_vertices, self.n_faces
        F = self.F
        if m and (F.min() < 0 or F.max() >= n):
            raise TopologyError(f"face indices must lie in [0, {n}), got [{F.min()}, {F.max()}]")
        if np.any((F[:, 0] == F[:, 1]) | (F[:, 1] == F[:, 2]) | (F[:, 2] == F[:, 0])):
            raise TopologyError("face with a repeated vertex index")

        tail = F.reshape(-1)
        head = F[:, [1, 2, 0]].reshape(-1)
        keys = tail * n + head
        order = np.argsort(keys, kind="stable")
        sorted_keys = keys[order]
        dup = sorted_keys[1:] == sorted_keys[:-1]
        if np.any(dup):
            h = int(order[1:][dup][0])
            raise TopologyError(
                f"directed edge ({tail[h]}, {head[h]}) is used by more than one face: "
                "inconsistent orientation or non-manifold edge"
            )
        rev = head * n + tail
        pos = np.minimum(np.searchsorted(sorted_keys, rev), max(len(keys) - 1, 0))
        twin = np.full(3 * m, -1, dtype=np.int64)
        found = sorted_keys[pos] == rev if m else np.zeros(0, dtype=bool)
        twin[found] = order[pos[found]]

        counts = np.bincount(tail, minlength=n)
        vf_ptr = np.concatenate([[0], np.cumsum(counts)])
        vf_corner = np.argsort(tail, kind="stable")

        normals = unit_face_normals(self.V, F)
        n_deg = int(np.count_nonzero(~normals.any(axis=1)))
        if n_deg:
            _LOGGER.warning("refresh: %d degenerate face(s) with zero area; normals set to 0", n_deg)

        self._twin, self._vf_ptr, self._vf_corner, self._normals = twin, vf_ptr, vf_corner, normals
        _LOGGER.debug("refresh: n=%d m=%d boundary half-edges=%d", n, m, int(np.sum(twin < 0)))
        return self

    def _ensure(self):
        if self._twin is None:
            self.refresh()

    @property
    def halfedge_twin(self) -> np.ndarray:
        """(3m,) opposite half-edge index, -1 on a boundary."""
        self._ensure()
        return self._twin

    @property
    def face_adjacency(self) -> np.ndarray:
        """(m, 3) face across edge (F[f, k], F[f, k+1]), -1 on a boundary."""
        twin = self.halfedge_twin
        adj = np.where(twin >= 0, twin // 3, -1)
        return adj.reshape(-1, 3)

    @property
    def face_normals(self) -> np.ndarray:
        """(m, 3) unit normals following the winding of F."""
        self._ensure()
        return self._normals

    @property
    def is_closed(self) -> bool:
        return bool(np.all(self.halfedge_twin >= 0))

    def boundary_vertices(self) -> np.ndarray:
        open_h = np.flatnonzero(self.halfedge_twin < 0)
        return np.unique(self.F.reshape(-1)[open_h])

    def vertex_faces(self, v: int) -> tuple[np.ndarray, np.ndarray]:
        """Faces incident to v and the local corner index of v in each."""
        self._ensure()
        corners = self._vf_corner[self._vf_ptr[v]:self._vf_ptr[v + 1]]
        return corners // 3, corners % 3

    def one_ring(self, v: int) -> Iterator[tuple[int, int]]:
        """
        Yield the edges (v, w) around v in angular order.

        On a boundary vertex the walk starts at the outgoing boundary edge so
        that the fan is covered once, ending with the incoming boundary edge.
        """
        faces, corners = self.vertex_faces(v)
        if faces.size == 0:
            return
        twin = self.halfedge_twin
        out = 3 * faces + corners
        open_out = out[twin[out] < 0]
        start = int(open_out[0]) if open_out.size else int(out[0])

        tail = self.F.reshape(-1)
        h = start
        for _ in range(faces.size):
            f, k = divmod(h, 3)
            yield v, int(self.F[f, (k + 1) % 3])
            prev = 3 * f + (k + 2) % 3
            h = int(twin[prev])
            if h < 0:
                yield v, int(tail[prev])
                return
            if h == start:
                return
        raise TopologyError(f"vertex {v} has a non-manifold one-ring")
