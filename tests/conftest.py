# conftest.py
from __future__ import annotations

import numpy as np
import pytest
import trimesh

from heatgeo.mesh import Mesh


def make_grid(res: int = 21, size: float = 1.0) -> Mesh:
    """Flat res x res grid on [0, size]^2, every cell split along (i,j)-(i+1,j+1)."""
    x = np.linspace(0.0, size, res)
    xv, yv = np.meshgrid(x, x, indexing="xy")
    V = np.column_stack([xv.ravel(), yv.ravel(), np.zeros(res * res)])

    faces = []
    for j in range(res - 1):
        for i in range(res - 1):
            a = j * res + i
            b = a + 1
            c = a + res + 1
            d = a + res
            faces.append([a, b, c])
            faces.append([a, c, d])
    return Mesh(V=V, F=np.array(faces))


@pytest.fixture
def icosphere():
    """Unit icosphere, 642 vertices, outward orientation."""
    ico = trimesh.creation.icosphere(subdivisions=3, radius=1.0)
    return Mesh.from_trimesh(ico)


@pytest.fixture
def cube():
    """Axis-aligned cube [-1, 1]^3 split into 12 right triangles."""
    return Mesh.from_trimesh(trimesh.creation.box(extents=(2.0, 2.0, 2.0)))


@pytest.fixture
def grid():
    return make_grid()


@pytest.fixture
def simple_triangle_mesh():
    """
    Provides a Mesh instance with a single triangle:
        v0 = [0, 0, 0]
        v1 = [1, 0, 0]
        v2 = [0, 1, 0]
    """
    verts = np.array(
        [
            [0.0, 0.0, 0.0],  # v0
            [1.0, 0.0, 0.0],  # v1
            [0.0, 1.0, 0.0],  # v2
        ]
    )
    return Mesh(V=verts, F=np.array([[0, 1, 2]]))


@pytest.fixture
def grid_factory():
    return make_grid
