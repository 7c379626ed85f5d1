"""Indexed triangle meshes and vertex deduplication."""

from __future__ import annotations

from typing import Iterable, NamedTuple

import numpy as np


class Vertex(NamedTuple):
    """A point in space, ordered lexicographically by x, then y, then z."""

    x: float
    y: float
    z: float


class Mesh:
    """A triangle mesh held as flat xyz coordinates and triangle indices."""

    def __init__(self, vertices, indices):
        self.vertices = np.ascontiguousarray(vertices, dtype=np.float32).reshape(-1)
        self.indices = np.ascontiguousarray(indices, dtype=np.uint32).reshape(-1)

    def min(self, start):
        """Smallest coordinate along the axis at offset ``start`` (-1 if none)."""
        if start >= self.vertices.size:
            return -1.0
        return float(np.fmin.reduce(self.vertices[start::3]))

    def max(self, start):
        """Largest coordinate along the axis at offset ``start`` (1 if none)."""
        if start >= self.vertices.size:
            return 1.0
        return float(np.fmax.reduce(self.vertices[start::3]))

    def bounds(self):
        """Return the ``(lower, upper)`` corners of the bounding box."""
        lower = tuple(self.min(axis) for axis in range(3))
        upper = tuple(self.max(axis) for axis in range(3))
        return lower, upper

    def tri_count(self):
        """Number of triangles in the mesh."""
        return self.indices.size // 3

    def is_empty(self):
        """True when the mesh holds no vertices."""
        return self.vertices.size == 0

    def triangles(self):
        """Triangle corner coordinates as an array of shape (n, 3, 3)."""
        count = self.tri_count()
        if count == 0 or self.is_empty():
            return np.empty((0, 3, 3), dtype=np.float32)
        points = self.vertices.reshape(-1, 3)
        return points[self.indices[: count * 3].reshape(-1, 3)]

    def __repr__(self):
        return (
            f"Mesh(vertices={self.vertices.size // 3}, "
            f"triangles={self.tri_count()})"
        )


def mesh_from_verts(verts: Iterable) -> Mesh:
    """Build an indexed mesh from triangle corners, three per triangle.

    Identical corners are merged; the unique vertices are stored in
    lexicographic (x, y, z) order.
    """
    points = np.asarray(list(verts) if not isinstance(verts, np.ndarray) else verts,
                        dtype=np.float32)
    if points.size == 0:
        return Mesh([], [])
    try:
        points = points.reshape(-1, 3)
    except ValueError:
        raise ValueError("vertex data must hold three coordinates per vertex") from None
    if points.shape[0] % 3:
        raise ValueError("vertex count must be a multiple of three")

    # Adding zero folds -0.0 into 0.0 so both compare as one vertex.
    points = points + np.float32(0.0)

    order = np.lexsort((points[:, 2], points[:, 1], points[:, 0]))
    ordered = points[order]
    is_new = np.empty(ordered.shape[0], dtype=bool)
    is_new[0] = True
    is_new[1:] = np.any(ordered[1:] != ordered[:-1], axis=1)

    unique = ordered[is_new]
    indices = np.empty(ordered.shape[0], dtype=np.uint32)
    indices[order] = np.cumsum(is_new) - 1
    return Mesh(unique.reshape(-1), indices)