"""Unit tests for the Mesh adapter: adjacency, normals, one-ring walks."""

import logging

import numpy as np
import pytest
import trimesh

from heatgeo.errors import TopologyError
from heatgeo.mesh import Mesh, unit_face_normals


def test_closed_mesh_adjacency(icosphere):
    icosphere.refresh()
    assert icosphere.is_closed
    assert icosphere.boundary_vertices().size == 0

    adj = icosphere.face_adjacency
    assert adj.shape == icosphere.F.shape
    assert np.all(adj >= 0)
    for f in range(0, icosphere.n_faces, 37):
        for g in adj[f]:
            assert f in adj[g]


def test_twins_reverse_edges(cube):
    cube.refresh()
    twin = cube.halfedge_twin
    tail = cube.F.reshape(-1)
    head = cube.F[:, [1, 2, 0]].reshape(-1)
    assert np.all(tail[twin] == head)
    assert np.all(head[twin] == tail)
    assert np.all(twin[twin] == np.arange(twin.size))


def test_face_normals_unit_and_outward(icosphere):
    N = icosphere.refresh().face_normals
    assert np.allclose(np.linalg.norm(N, axis=1), 1.0)
    centroids = icosphere.V[icosphere.F].mean(axis=1)
    assert np.all((N * centroids).sum(axis=1) > 0.0)


def test_degenerate_face_normal_is_zero(caplog):
    V = np.array([[0, 0, 0], [1, 0, 0], [2, 0, 0], [1, 1, 0]], dtype=float)
    F = np.array([[0, 1, 3], [1, 2, 3], [0, 2, 1]])
    mesh = Mesh(V=V, F=F)
    with caplog.at_level(logging.WARNING, logger="heatgeo"):
        mesh.refresh()
    assert "degenerate" in caplog.text

    N = mesh.face_normals
    assert np.allclose(N[:2], [0.0, 0.0, 1.0])
    assert np.array_equal(N[2], np.zeros(3))
    assert np.array_equal(unit_face_normals(V, F), N)


def test_vertex_faces_cover_all_corners(icosphere):
    icosphere.refresh()
    total = 0
    for v in range(icosphere.n_vertices):
        faces, corners = icosphere.vertex_faces(v)
        assert np.all(icosphere.F[faces, corners] == v)
        total += faces.size
    assert total == 3 * icosphere.n_faces


def test_one_ring_closed_vertex(icosphere):
    icosphere.refresh()
    ring = [w for _, w in icosphere.one_ring(0)]

    edges = {tuple(sorted(e)) for e in icosphere.F[:, [0, 1, 1, 2, 2, 0]].reshape(-1, 2)}
    expected = {b if a == 0 else a for a, b in edges if 0 in (a, b)}
    assert len(ring) == len(expected)
    assert set(ring) == expected

    # consecutive neighbours span a face with the centre vertex
    tris = {frozenset(f) for f in icosphere.F.tolist()}
    for w0, w1 in zip(ring, ring[1:] + ring[:1]):
        assert frozenset((0, w0, w1)) in tris


def test_one_ring_boundary_corner(grid):
    grid.refresh()
    ring = [w for _, w in grid.one_ring(0)]
    res = 21
    assert len(ring) == 3
    assert ring[1] == res + 1  # the diagonal sits between the two boundary edges
    assert set(ring) == {1, res, res + 1}


def test_boundary_detection(grid):
    grid.refresh()
    assert not grid.is_closed
    b = grid.boundary_vertices()
    assert b.size == 4 * 20
    assert 0 in b
    assert 10 * 21 + 10 not in b


def test_inconsistent_orientation_raises(icosphere):
    F = icosphere.F.copy()
    F[0] = F[0, ::-1]
    with pytest.raises(TopologyError):
        Mesh(V=icosphere.V, F=F).refresh()


def test_non_manifold_edge_raises():
    V = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, -1, 0], [0, 0, 1]], dtype=float)
    F = np.array([[0, 1, 2], [1, 0, 3], [0, 1, 4]])
    with pytest.raises(TopologyError):
        Mesh(V=V, F=F).refresh()


def test_face_index_out_of_range_raises(simple_triangle_mesh):
    mesh = Mesh(V=simple_triangle_mesh.V, F=np.array([[0, 1, 3]]))
    with pytest.raises(TopologyError):
        mesh.refresh()


def test_bad_shapes_raise():
    with pytest.raises(ValueError):
        Mesh(V=np.zeros((3, 2)), F=np.array([[0, 1, 2]]))
    with pytest.raises(ValueError):
        Mesh(V=np.zeros((3, 3)), F=np.array([0, 1, 2]))


def test_load_recenters_and_rescales(tmp_path):
    ico = trimesh.creation.icosphere(subdivisions=2, radius=3.0)
    ico.apply_translation([5.0, 0.0, 0.0])
    path = tmp_path / "sphere.ply"
    ico.export(str(path))

    mesh = Mesh.load(str(path))
    assert mesh.V.dtype == np.float64
    assert mesh.F.shape[1] == 3
    assert np.allclose(mesh.V.mean(axis=0), 0.0, atol=1e-2)
    assert np.ptp(mesh.V, axis=0).max() < 1.0 + 1e-9


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Mesh.load(str(tmp_path / "missing.obj"))
