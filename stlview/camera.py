"""Camera state and view matrices for the mesh viewer."""

from __future__ import annotations

import math
from enum import IntEnum

import numpy as np

P_PERSPECTIVE = 0.25
P_ORTHOGRAPHIC = 0.0


class ViewPoint(IntEnum):
    """Preset viewpoints."""

    CENTER = 0
    ISO = 1
    TOP = 2
    BOTTOM = 3
    LEFT = 4
    RIGHT = 5
    FRONT = 6
    BACK = 7


class DrawMode(IntEnum):
    """Ways of drawing the mesh."""

    SHADED = 0
    WIREFRAME = 1
    SURFACE_ANGLE = 2
    MESHLIGHT = 3


_X = (1.0, 0.0, 0.0)
_Y = (0.0, 1.0, 0.0)
_Z = (0.0, 0.0, 1.0)


def rotation(angle, axis):
    """4x4 matrix rotating by ``angle`` degrees about ``axis``."""
    matrix = np.identity(4)
    if angle == 0:
        return matrix
    x, y, z = (float(value) for value in axis)
    length = math.sqrt(x * x + y * y + z * z)
    if length == 0:
        return matrix
    x, y, z = x / length, y / length, z / length

    if angle in (90, -270):
        s, c = 1.0, 0.0
    elif angle in (-90, 270):
        s, c = -1.0, 0.0
    elif angle in (180, -180):
        s, c = 0.0, -1.0
    else:
        radians = math.radians(angle)
        s, c = math.sin(radians), math.cos(radians)
    ic = 1.0 - c

    matrix[:3, :3] = [
        [x * x * ic + c, x * y * ic - z * s, x * z * ic + y * s],
        [y * x * ic + z * s, y * y * ic + c, y * z * ic - x * s],
        [x * z * ic - y * s, y * z * ic + x * s, z * z * ic + c],
    ]
    return matrix


def translation(offset):
    """4x4 matrix translating by ``offset``."""
    matrix = np.identity(4)
    matrix[:3, 3] = [float(value) for value in offset]
    return matrix


def scaling(sx, sy, sz):
    """4x4 matrix scaling each axis independently."""
    return np.diag([float(sx), float(sy), float(sz), 1.0])


def _map_point(matrix, point):
    """Apply a 4x4 matrix to a 3D point, with projective division."""
    result = matrix @ np.array([point[0], point[1], point[2], 1.0])
    w = result[3]
    if w == 1.0 or w == 0.0:
        return result[:3].copy()
    return result[:3] / w


def _map_vector(matrix, vector):
    """Apply the linear part of a 4x4 matrix to a direction."""
    return matrix[:3, :3] @ np.asarray(vector, dtype=float)


def light_directions():
    """Named light directions as ``(name, (x, y, z))`` pairs, 26 in all."""
    xname = ("right ", " ", "left ")
    yname = ("top ", " ", "bottom ")
    zname = ("rear ", " ", "front ")
    directions = []
    for i in (-1, 0, 1):
        for j in (-1, 0, 1):
            for k in (-1, 0, 1):
                if i == 0 and j == 0 and k == 0:
                    continue
                name = " ".join((xname[i + 1] + yname[j + 1] + zname[k + 1]).split())
                directions.append((name, (float(i), float(j), float(k))))
    return directions


def _fmt(value):
    return f"{float(value):g}"


def mesh_info(mesh):
    """Text summary of a mesh's triangle count and bounding box."""
    lower, upper = mesh.bounds()
    lines = [f"Triangles: {mesh.tri_count()}"]
    for label, low, high in zip("XYZ", lower, upper):
        lines.append(f"{label}: [{_fmt(low)}, {_fmt(high)}]")
    return "\n".join(lines)


class Camera:
    """Orientation, position, zoom and projection of the view."""

    def __init__(self):
        self.center = np.zeros(3)
        self.default_center = np.zeros(3)
        self.scale = 1.0
        self.default_scale = 1.0
        self.zoom = 1.0
        self.perspective = P_PERSPECTIVE
        self.invert_zoom = False
        self.reset_transform_on_load = True
        self.current_transform = np.identity(4)
        self.reset_transform()

    def reset_transform(self):
        """Return to the initial orientation and zoom."""
        transform = np.identity(4)
        transform = transform @ rotation(-90.0, _X)
        transform = transform @ rotation(180.0 + 15.0, _Z)
        transform = transform @ rotation(15.0, (1.0, -math.sin(math.pi / 12), 0.0))
        self.current_transform = transform
        self.zoom = 1.0

    def load_bounds(self, lower, upper, is_reload=False):
        """Fit the view to a bounding box, unless this is a reload."""
        if is_reload:
            return
        lower = np.asarray(lower, dtype=float)
        upper = np.asarray(upper, dtype=float)
        self.center = (lower + upper) / 2
        self.default_center = self.center.copy()
        length = float(np.linalg.norm(upper - lower))
        self.scale = 2.0 / length if length else math.inf
        self.default_scale = self.scale
        self.zoom = 1.0
        if self.reset_transform_on_load:
            self.reset_transform()

    def common_view_change(self, view):
        """Switch to a preset viewpoint."""
        view = ViewPoint(view)
        if view is ViewPoint.CENTER:
            self.scale = self.default_scale
            self.center = self.default_center.copy()
            self.zoom = 1.0
            return

        steps = {
            ViewPoint.ISO: [(90, _X), (-45, _Z), (35.264, (1.0, 1.0, 0.0))],
            ViewPoint.TOP: [(180, _X)],
            ViewPoint.LEFT: [(180, _X), (90, _Z), (90, _Y)],
            ViewPoint.RIGHT: [(180, _X), (-90.0, _Y), (-90, _X)],
            ViewPoint.FRONT: [(90, _X)],
            ViewPoint.BACK: [(90, _X), (180, _Z)],
            ViewPoint.BOTTOM: [],
        }[view]

        transform = rotation(180.0, _Z)
        for angle, axis in steps:
            transform = transform @ rotation(angle, axis)
        self.current_transform = transform

    def orient_matrix(self):
        """The current rotation of the model."""
        return self.current_transform.copy()

    def transform_matrix(self):
        """Model transform: orientation, scale, then centring."""
        return (
            self.orient_matrix()
            @ scaling(self.scale, self.scale, self.scale)
            @ translation(-self.center)
        )

    def aspect_matrix(self, width, height):
        """Matrix correcting for the viewport's aspect ratio."""
        if width > height:
            return scaling(-height / float(width), 1.0, 0.5)
        return scaling(-1.0, width / float(height), 0.5)

    def view_matrix(self, width, height):
        """Aspect correction, zoom and perspective."""
        matrix = self.aspect_matrix(width, height) @ scaling(self.zoom, self.zoom, 1.0)
        matrix[3, 2] = self.perspective
        return matrix

    def mouse_to_unit(self, x, y, width, height):
        """Map widget pixel coordinates to [-1, 1] on both axes."""
        return (x / (width / 2.0) - 1.0, y / (height / 2.0) - 1.0)

    def arcball(self, p1, p2):
        """Rotate the model as if dragging a sphere from ``p1`` to ``p2``."""

        def on_sphere(point):
            x, y = float(point[0]), float(point[1])
            sq = x * x + y * y
            if sq <= 1:
                return np.array([x, y, math.sqrt(1.0 - sq)])
            norm = math.sqrt(sq)
            return np.array([x / norm, y / norm, 0.0])

        v1 = on_sphere(p1)
        v2 = on_sphere(p2)
        axis = _map_vector(np.linalg.inv(self.current_transform), np.cross(v1, v2))
        angle = math.degrees(math.acos(max(-1.0, min(1.0, float(np.dot(v1, v2))))))
        self.current_transform = self.current_transform @ rotation(angle, axis)

    def _unproject(self, point, width, height):
        inverse = np.linalg.inv(self.transform_matrix()) @ np.linalg.inv(
            self.view_matrix(width, height)
        )
        return _map_point(inverse, point)

    def pan(self, dx, dy, width, height):
        """Move the view centre after a drag of ``(dx, dy)`` pixels."""
        self.center = self._unproject(
            (-dx / (0.5 * width), dy / (0.5 * height), 0.0), width, height
        )

    def wheel(self, x, y, delta, width, height):
        """Zoom by a wheel ``delta`` about the cursor at ``(x, y)``."""
        v = (1 - x / (0.5 * width), y / (0.5 * height) - 1, 0.0)
        before = self._unproject(v, width, height)

        if delta:
            steps = abs(int(delta))
            zoom_in = (delta < 0) != self.invert_zoom
            factor = 1.001 ** steps
            self.zoom = self.zoom * factor if zoom_in else self.zoom / factor

        after = self._unproject(v, width, height)
        self.center = self.center + (after - before)
        return self.zoom