"""The interactive viewer window and the command-line entry point."""

from __future__ import annotations

import argparse
import os
import sys

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import LineCollection, PolyCollection
from matplotlib.figure import Figure

from .browser import RecentFiles, expand_user_path, file_neighbors, screenshot_path
from .camera import (
    P_ORTHOGRAPHIC,
    P_PERSPECTIVE,
    Camera,
    DrawMode,
    ViewPoint,
    mesh_info,
    translation,
)
from .loader import BadStlError, EmptyMeshError, MissingFileError, StlError, load_stl
from .overlays import (
    LABEL_OFFSET,
    axis_labels,
    axis_lines,
    backdrop_quad,
    hud_matrix,
    scaled_axis_lines,
)
from .settings import LightingPrefs, Settings

INVERT_ZOOM_KEY = "invertZoom"
AUTORELOAD_KEY = "autoreload"
DRAW_AXES_KEY = "drawAxes"
PROJECTION_KEY = "projection"
DRAW_MODE_KEY = "drawMode"
RESET_TRANSFORM_ON_LOAD_KEY = "resetTransformOnLoad"

_DPI = 100
_POLL_INTERVAL_MS = 500

_ERROR_MESSAGES = (
    (BadStlError, "This .stl file is invalid or corrupted.\n"
                  "Please export it from the original source, verify, and retry."),
    (EmptyMeshError, "This file is syntactically correct\nbut contains no triangles."),
    (MissingFileError, "The target file is missing."),
)

_VIEW_KEYS = {
    "0": ViewPoint.ISO,
    "1": ViewPoint.TOP,
    "2": ViewPoint.BOTTOM,
    "3": ViewPoint.FRONT,
    "4": ViewPoint.BACK,
    "5": ViewPoint.LEFT,
    "6": ViewPoint.RIGHT,
    "9": ViewPoint.CENTER,
}


def _error_message(exc):
    for kind, message in _ERROR_MESSAGES:
        if isinstance(exc, kind):
            return message
    return str(exc)


def _project(points, transform, view):
    """Map points through ``view @ transform``; return NDC coordinates and w."""
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    homogeneous = np.hstack((points, np.ones((points.shape[0], 1))))
    clip = homogeneous @ (view @ transform).T
    w = clip[:, 3]
    safe = np.where(np.abs(w) < 1e-12, 1e-12, w)
    return clip[:, :3] / safe[:, None], w


def _mtime(path):
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return None


class Viewer:
    """Viewer state: the loaded mesh, the camera and the display options."""

    settle = 0.1

    def __init__(self, settings):
        self.settings = settings
        self.camera = Camera()
        self.lighting = LightingPrefs(settings)
        self.recent = RecentFiles(settings)
        self.mesh = None
        self.mesh_info = ""
        self.status = ""
        self.title = "stlview"
        self.current_file = None
        self.watched_file = None
        self.size = (600, 400)
        self._loading = False
        self._watched_mtime = None
        self._axis_lines = axis_lines()
        self._load_persistent_settings()

    def _load_persistent_settings(self):
        get = self.settings.get
        self.camera.invert_zoom = bool(get(INVERT_ZOOM_KEY, False))
        self.camera.reset_transform_on_load = bool(get(RESET_TRANSFORM_ON_LOAD_KEY, True))
        self.autoreload = bool(get(AUTORELOAD_KEY, True))
        self.draw_axes = bool(get(DRAW_AXES_KEY, False))
        projection = get(PROJECTION_KEY, "perspective")
        self.camera.perspective = (
            P_PERSPECTIVE if projection == "perspective" else P_ORTHOGRAPHIC
        )
        try:
            self.draw_mode = DrawMode(get(DRAW_MODE_KEY, DrawMode.SHADED))
        except (TypeError, ValueError):
            self.draw_mode = DrawMode.SHADED

    def load(self, filename, is_reload=False):
        """Load an STL file; returns False if a load is already running.

        Raises MissingFileError, BadStlError or EmptyMeshError.
        """
        if self._loading:
            return False
        filename = os.fspath(filename)
        self._loading = True
        self.status = f"Loading {filename}"
        try:
            mesh = load_stl(filename, self.settle)
        finally:
            self._loading = False
            self.status = ""

        lower, upper = mesh.bounds()
        self.camera.load_bounds(lower, upper, is_reload)
        self.mesh = mesh
        self.mesh_info = mesh_info(mesh)
        self._axis_lines = scaled_axis_lines(lower, upper)

        self.title = filename
        self.watched_file = filename
        self._watched_mtime = _mtime(filename)
        self.recent.add(filename)
        self.current_file = filename
        return True

    def reload(self):
        """Load the watched file again, keeping the camera."""
        if self.watched_file is None:
            return False
        return self.load(self.watched_file, True)

    def load_prev(self):
        """Load the STL file before the current one in its folder."""
        previous, _ = file_neighbors(self.current_file)
        if previous is None:
            return False
        return self.load(previous)

    def load_next(self):
        """Load the STL file after the current one in its folder."""
        _, following = file_neighbors(self.current_file)
        if following is None:
            return False
        return self.load(following)

    def render(self, width=600, height=400):
        """Draw the scene into a new off-screen figure of the given pixel size."""
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be positive")
        figure = Figure(figsize=(width / _DPI, height / _DPI), dpi=_DPI)
        FigureCanvasAgg(figure)
        self._draw(figure, width, height)
        return figure

    def save_screenshot(self, filename):
        """Save the current view as an image and return the path written."""
        path = screenshot_path(filename)
        width, height = self.size
        self.render(width, height).savefig(path, dpi=_DPI)
        return path

    def _draw(self, figure, width, height):
        figure.clear()
        ax = figure.add_axes((0, 0, 1, 1))
        ax.set_axis_off()
        ax.set_xlim(-1, 1)
        ax.set_ylim(-1, 1)
        ax.set_autoscale_on(False)

        self._draw_backdrop(ax)
        if self.mesh is not None:
            self._draw_mesh(ax, width, height)
        if self.draw_axes:
            self._draw_axes(ax, width, height)
            ax.text(0.015, 0.97, self.mesh_info, transform=ax.transAxes,
                    va="top", ha="left", color="white", fontsize=9, zorder=5)
        ax.text(0.015, 0.03, self.status, transform=ax.transAxes,
                va="bottom", ha="left", color="white", fontsize=9, zorder=5)

    def _draw_backdrop(self, ax):
        colours = backdrop_quad()[:, 2:].astype(float)
        t = np.linspace(0.0, 1.0, 64)
        ty, tx = np.meshgrid(t, t, indexing="ij")
        tx, ty = tx[..., None], ty[..., None]
        bottom = (1 - tx) * colours[0] + tx * colours[2]
        top = (1 - tx) * colours[1] + tx * colours[3]
        image = np.clip((1 - ty) * bottom + ty * top, 0.0, 1.0)
        ax.imshow(image, extent=(-1, 1, -1, 1), origin="lower",
                  interpolation="bilinear", aspect="auto", zorder=0)

    def _draw_mesh(self, ax, width, height):
        transform = self.camera.transform_matrix()
        view = self.camera.view_matrix(width, height)
        corners = self.mesh.triangles().astype(float).reshape(-1, 3)
        if corners.size == 0:
            return

        ndc, w = _project(corners, transform, view)
        ndc = ndc.reshape(-1, 3, 3)
        visible = np.all(w.reshape(-1, 3) > 0, axis=1)

        eye = _project(corners, transform, np.identity(4))[0].reshape(-1, 3, 3)
        normals = np.cross(eye[:, 1] - eye[:, 0], eye[:, 2] - eye[:, 0])
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        normals = np.divide(normals, lengths, out=np.zeros_like(normals),
                            where=lengths > 0)
        # Light both sides: turn every normal towards the viewer.
        normals = np.where(normals[:, 2:3] > 0, -normals, normals)

        # Painter's order: farthest (largest depth) first.
        order = np.argsort(-ndc[:, :, 2].mean(axis=1), kind="stable")
        order = order[visible[order]]
        if order.size == 0:
            return
        polygons = ndc[order, :, :2]

        if self.draw_mode is DrawMode.WIREFRAME:
            collection = PolyCollection(polygons, facecolors="none",
                                        edgecolors=(1.0, 1.0, 1.0, 0.9),
                                        linewidths=0.4, zorder=2)
        else:
            colours = self._face_colours(normals[order])
            collection = PolyCollection(polygons, facecolors=colours,
                                        edgecolors=colours, linewidths=0.2,
                                        zorder=2)
        ax.add_collection(collection)

    def _face_colours(self, normals):
        facing = np.clip(-normals[:, 2], 0.0, 1.0)
        if self.draw_mode is DrawMode.SURFACE_ANGLE:
            colours = np.column_stack((1.0 - facing, facing, np.full_like(facing, 0.2)))
        elif self.draw_mode is DrawMode.MESHLIGHT:
            lighting = self.lighting
            ambient = np.asarray(lighting.ambient_color) * lighting.ambient_factor
            direction = np.asarray(lighting.direction_vector, dtype=float)
            direction /= np.linalg.norm(direction)
            diffuse = np.clip(-(normals @ direction), 0.0, 1.0)
            directive = np.asarray(lighting.directive_color) * lighting.directive_factor
            colours = ambient[None, :] + diffuse[:, None] * directive[None, :]
        else:
            base = np.array([0.7, 0.7, 0.75])
            colours = base[None, :] * (0.25 + 0.75 * facing)[:, None]
        return np.clip(colours, 0.0, 1.0)

    def _add_lines(self, ax, data, transform, view, zorder):
        ndc, _ = _project(data[:, :3], transform, view)
        segments = ndc[:, :2].reshape(-1, 2, 2)
        colours = np.clip(data[0::2, 3:].astype(float), 0.0, 1.0)
        ax.add_collection(LineCollection(segments, colors=colours,
                                         linewidths=1.5, zorder=zorder))

    def _draw_axes(self, ax, width, height):
        camera = self.camera
        self._add_lines(ax, self._axis_lines, camera.transform_matrix(),
                        camera.view_matrix(width, height), zorder=3)

        hud_view = camera.aspect_matrix(width, height) @ hud_matrix(width / float(height))
        orient = camera.orient_matrix()
        self._add_lines(ax, axis_lines(), orient, hud_view, zorder=4)
        for index, label in enumerate(axis_labels()):
            offset = np.zeros(3)
            offset[index] = LABEL_OFFSET
            label_transform = translation(orient[:3, :3] @ offset)
            self._add_lines(ax, label, label_transform, hud_view, zorder=4)

    def _toggle_setting(self, key, value):
        self.settings.set(key, value)

    def _handle_key(self, key):
        if self._loading:
            return False
        try:
            if key == "left":
                self.load_prev()
            elif key == "right":
                self.load_next()
            elif key in _VIEW_KEYS:
                self.camera.common_view_change(_VIEW_KEYS[key])
            elif key == "f5":
                self.reload()
            elif key == "m":
                self.draw_mode = DrawMode((self.draw_mode + 1) % len(DrawMode))
                self._toggle_setting(DRAW_MODE_KEY, int(self.draw_mode))
            elif key == "p":
                orthographic = self.camera.perspective == P_PERSPECTIVE
                self.camera.perspective = P_ORTHOGRAPHIC if orthographic else P_PERSPECTIVE
                self._toggle_setting(PROJECTION_KEY,
                                     "orthographic" if orthographic else "perspective")
            elif key == "x":
                self.draw_axes = not self.draw_axes
                self._toggle_setting(DRAW_AXES_KEY, self.draw_axes)
            elif key == "i":
                self.camera.invert_zoom = not self.camera.invert_zoom
                self._toggle_setting(INVERT_ZOOM_KEY, self.camera.invert_zoom)
            else:
                return False
        except StlError as exc:
            self.status = _error_message(exc)
        return True

    def _poll_watched(self):
        if not self.autoreload or self.watched_file is None or self._loading:
            return False
        stamp = _mtime(self.watched_file)
        if stamp is None or stamp == self._watched_mtime:
            return False
        self._watched_mtime = stamp
        try:
            self.load(self.watched_file, True)
        except StlError as exc:
            self.status = _error_message(exc)
        return True

    def show(self):
        """Open an interactive window and block until it is closed."""
        import matplotlib.pyplot as plt

        overrides = {
            "toolbar": "None",
            "keymap.back": [],
            "keymap.forward": [],
            "keymap.pan": [],
            "keymap.fullscreen": ["f11"],
        }
        with plt.rc_context(overrides):
            width, height = self.size
            figure = plt.figure(figsize=(width / _DPI, height / _DPI), dpi=_DPI)
            canvas = figure.canvas
            drag = {"pos": None, "button": None}

            def pixel_size():
                return figure.bbox.width, figure.bbox.height

            def redraw():
                w, h = pixel_size()
                self.size = (max(int(w), 1), max(int(h), 1))
                self._draw(figure, w, h)
                if canvas.manager is not None:
                    canvas.manager.set_window_title(self.title)
                canvas.draw_idle()

            def on_press(event):
                if event.button in (1, 3) and event.x is not None:
                    _, h = pixel_size()
                    drag["pos"] = (event.x, h - event.y)
                    drag["button"] = int(event.button)

            def on_release(event):
                if event.button in (1, 3):
                    drag["pos"] = None

            def on_motion(event):
                if drag["pos"] is None or event.x is None:
                    return
                w, h = pixel_size()
                point = (event.x, h - event.y)
                previous = drag["pos"]
                if drag["button"] == 1:
                    p1 = self.camera.mouse_to_unit(*previous, w, h)
                    p2 = self.camera.mouse_to_unit(*point, w, h)
                    self.camera.arcball(p1, p2)
                else:
                    self.camera.pan(point[0] - previous[0],
                                    point[1] - previous[1], w, h)
                drag["pos"] = point
                redraw()

            def on_scroll(event):
                if event.x is None:
                    return
                w, h = pixel_size()
                self.camera.wheel(event.x, h - event.y, event.step * 120, w, h)
                redraw()

            def on_key(event):
                if event.key is not None and self._handle_key(event.key):
                    redraw()

            def on_poll():
                if self._poll_watched():
                    redraw()

            canvas.mpl_connect("button_press_event", on_press)
            canvas.mpl_connect("button_release_event", on_release)
            canvas.mpl_connect("motion_notify_event", on_motion)
            canvas.mpl_connect("scroll_event", on_scroll)
            canvas.mpl_connect("key_press_event", on_key)
            canvas.mpl_connect("resize_event", lambda event: redraw())

            timer = canvas.new_timer(interval=_POLL_INTERVAL_MS)
            timer.add_callback(on_poll)
            timer.start()

            redraw()
            plt.show()
            timer.stop()


def _parse_size(text):
    try:
        width, height = (int(part) for part in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from None
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("width and height must be positive")
    return width, height


def main(argv=None):
    """Run the viewer from the command line."""
    parser = argparse.ArgumentParser(prog="stlview", description="Fast STL file viewer.")
    parser.add_argument("filename", nargs="?", help="STL file to open")
    parser.add_argument("--settings", help="settings file to use")
    parser.add_argument("--screenshot", metavar="IMAGE",
                        help="save the view to an image instead of opening a window")
    parser.add_argument("--size", type=_parse_size, default=(600, 400),
                        help="view size as WIDTHxHEIGHT (default 600x400)")
    args = parser.parse_args(argv)

    viewer = Viewer(Settings(args.settings))
    viewer.size = args.size

    status = 0
    if args.filename:
        try:
            viewer.load(expand_user_path(args.filename))
        except StlError as exc:
            message = _error_message(exc)
            print(f"Error: {message}", file=sys.stderr)
            viewer.status = message.replace("\n", " ")
            status = 1

    if args.screenshot:
        viewer.save_screenshot(args.screenshot)
    else:
        viewer.show()
    return status