import math

import numpy as np
import pytest

from stlview.mesh import Mesh, Vertex, mesh_from_verts


SQUARE = [
    (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0),
    (0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0),
]


def test_vertex_orders_lexicographically():
    items = [Vertex(1, 0, 0), Vertex(0, 2, 0), Vertex(0, 1, 5), Vertex(0, 1, 3)]
    assert sorted(items) == [
        Vertex(0, 1, 3), Vertex(0, 1, 5), Vertex(0, 2, 0), Vertex(1, 0, 0)
    ]


def test_vertex_equality_compares_coordinates():
    a = Vertex(1.5, 2.5, 3.5)
    b = Vertex(1.5, 2.5, 3.5)
    assert (a == b) is True
    assert (a < b) is False
    assert (Vertex(1.5, 2.5, 3.0) < a) is True
    mesh = mesh_from_verts([a, b, Vertex(0.0, 0.0, 0.0)])
    assert mesh.vertices.size == 6
    assert mesh.tri_count() == 1


def test_min_max_per_axis():
    mesh = Mesh([0.0, 1.0, 2.0, 3.0, -1.0, 5.0], [0, 1, 1])
    assert mesh.min(0) == 0.0
    assert mesh.max(0) == 3.0
    assert mesh.min(1) == -1.0
    assert mesh.max(1) == 1.0
    assert mesh.min(2) == 2.0
    assert mesh.max(2) == 5.0


def test_min_max_fall_back_when_out_of_range():
    mesh = Mesh([], [])
    assert mesh.min(0) == -1.0
    assert mesh.max(2) == 1.0


def test_min_ignores_nan():
    mesh = Mesh([math.nan, 0.0, 0.0, 4.0, 0.0, 0.0], [0, 1, 1])
    assert mesh.min(0) == 4.0
    assert mesh.max(0) == 4.0


def test_empty_mesh():
    mesh = Mesh([], [])
    assert mesh.is_empty()
    assert mesh.tri_count() == 0
    assert mesh.triangles().shape == (0, 3, 3)


def test_mesh_from_verts_deduplicates():
    mesh = mesh_from_verts(SQUARE)
    assert mesh.tri_count() == len(SQUARE) // 3
    assert mesh.vertices.size // 3 == len(set(SQUARE))


def test_mesh_from_verts_round_trips_triangles():
    mesh = mesh_from_verts(SQUARE)
    expected = np.array(SQUARE, dtype=np.float32).reshape(-1, 3, 3)
    assert np.array_equal(mesh.triangles(), expected)


def test_unique_vertices_are_sorted():
    mesh = mesh_from_verts(SQUARE)
    points = [tuple(p) for p in mesh.vertices.reshape(-1, 3).tolist()]
    assert points == sorted(set(SQUARE))


def test_accepts_vertex_objects():
    verts = [Vertex(*p) for p in SQUARE]
    mesh = mesh_from_verts(verts)
    expected = np.array(SQUARE, dtype=np.float32).reshape(-1, 3, 3)
    assert np.array_equal(mesh.triangles(), expected)


def test_negative_zero_merges_with_zero():
    verts = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0),
             (-0.0, 0.0, -0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
    mesh = mesh_from_verts(verts)
    assert mesh.vertices.size // 3 == len(set(verts))


def test_bounds():
    mesh = mesh_from_verts(SQUARE)
    lower, upper = mesh.bounds()
    assert lower == (0.0, 0.0, 0.0)
    assert upper == (1.0, 1.0, 0.0)


def test_empty_input_gives_empty_mesh():
    mesh = mesh_from_verts([])
    assert mesh.is_empty()
    assert mesh.tri_count() == 0


def test_incomplete_triangle_rejected():
    with pytest.raises(ValueError):
        mesh_from_verts(SQUARE[:4])