"""Vertex data for the axis lines, the axis HUD and the backdrop."""

from __future__ import annotations

import numpy as np

from .camera import scaling, translation

HUD_SIZE = 0.2
LABEL_OFFSET = 1.25

# Line segments drawing the letters X, Y and Z, as xyz pairs.
_LETTERS = (
    (
        (-0.1, -0.2, 0.0), (0.1, 0.2, 0.0),
        (0.1, -0.2, 0.0), (-0.1, 0.2, 0.0),
    ),
    (
        (0.0, -0.2, 0.0), (0.0, 0.0, 0.0),
        (0.0, 0.0, 0.0), (0.1, 0.2, 0.0),
        (0.0, 0.0, 0.0), (-0.1, 0.2, 0.0),
    ),
    (
        (-0.1, -0.2, 0.0), (0.1, -0.2, 0.0),
        (0.1, -0.2, 0.0), (-0.1, 0.2, 0.0),
        (-0.1, 0.2, 0.0), (0.1, 0.2, 0.0),
    ),
)

_BACKDROP = (
    (-1.0, -1.0, 0.00, 0.10, 0.15),
    (-1.0, 1.0, 0.03, 0.21, 0.26),
    (1.0, -1.0, 0.00, 0.12, 0.18),
    (1.0, 1.0, 0.06, 0.26, 0.30),
)


def axis_lines():
    """Unit axis lines as a (6, 6) array of xyz position and rgb colour.

    Rows 2*a and 2*a+1 hold the two ends of the line along axis ``a``,
    running from the origin to 1, coloured pure red, green or blue.
    """
    lines = np.zeros((6, 6), dtype=np.float32)
    for axis in range(3):
        lines[2 * axis, 3 + axis] = 1.0
        lines[2 * axis + 1, 3 + axis] = 1.0
        lines[2 * axis + 1, axis] = 1.0
    return lines


def axis_labels():
    """Letter line segments for the three axes, each an (n, 6) array."""
    labels = []
    for axis, letter in enumerate(_LETTERS):
        points = np.asarray(letter, dtype=np.float32)
        colour = np.zeros((points.shape[0], 3), dtype=np.float32)
        colour[:, axis] = 1.0
        labels.append(np.hstack((points, colour)))
    return labels


def scaled_axis_lines(lower, upper):
    """Axis lines stretched to span a bounding box plus a uniform margin.

    The margin is a quarter of the largest extent of the box.
    """
    lower = np.asarray(lower, dtype=np.float32)
    upper = np.asarray(upper, dtype=np.float32)
    margin = np.float32(0.25) * float(np.max(upper - lower))
    lines = axis_lines()
    for axis in range(3):
        lines[2 * axis, axis] = lower[axis] - margin
        lines[2 * axis + 1, axis] = upper[axis] + margin
    return lines


def hud_matrix(aspect_ratio):
    """Matrix placing the small axis HUD in the corner of the view."""
    if aspect_ratio <= 0:
        raise ValueError("aspect ratio must be positive")
    if aspect_ratio > 1.0:
        offset = (aspect_ratio - 2 * HUD_SIZE, -1.0 + 2 * HUD_SIZE, 0.0)
    else:
        offset = (1.0 - 2 * HUD_SIZE, -1.0 / aspect_ratio + 2 * HUD_SIZE, 0.0)
    return translation(offset) @ scaling(HUD_SIZE, HUD_SIZE, 1.0)


def backdrop_quad():
    """Background gradient quad as a (4, 5) array of xy position and rgb colour.

    The rows are ordered for drawing as a triangle strip.
    """
    return np.asarray(_BACKDROP, dtype=np.float32)