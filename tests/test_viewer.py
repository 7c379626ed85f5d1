import struct

import numpy as np
import pytest

from stlview.camera import P_ORTHOGRAPHIC, P_PERSPECTIVE, DrawMode
from stlview.loader import BadStlError, MissingFileError
from stlview.settings import Settings
from stlview.viewer import Viewer, main

TETRA = [
    ((0, 0, 0), (1, 0, 0), (0, 1, 0)),
    ((0, 0, 0), (0, 0, 1), (1, 0, 0)),
    ((0, 0, 0), (0, 1, 0), (0, 0, 1)),
    ((1, 0, 0), (0, 0, 1), (0, 1, 0)),
]


def write_binary(path, triangles=TETRA):
    data = bytearray(80) + struct.pack("<I", len(triangles))
    for triangle in triangles:
        data += struct.pack("<3f", 0.0, 0.0, 0.0)
        for corner in triangle:
            data += struct.pack("<3f", *corner)
        data += struct.pack("<H", 0)
    path.write_bytes(bytes(data))
    return path


@pytest.fixture
def settings(tmp_path):
    return Settings(tmp_path / "settings.json")


@pytest.fixture
def viewer(settings):
    view = Viewer(settings)
    view.settle = 0
    return view


def pixels(figure):
    figure.canvas.draw()
    return np.asarray(figure.canvas.buffer_rgba()).copy()


def test_load_sets_state(viewer, tmp_path):
    path = write_binary(tmp_path / "model.stl")
    assert viewer.load(path) is True
    assert viewer.mesh.tri_count() == 4
    assert viewer.current_file == str(path)
    assert viewer.title == str(path)
    assert viewer.watched_file == str(path)
    assert viewer.recent.files() == [str(path)]
    assert viewer.status == ""
    assert viewer.mesh_info.startswith("Triangles: 4")


def test_load_fits_camera(viewer, tmp_path):
    viewer.load(write_binary(tmp_path / "model.stl"))
    assert np.allclose(viewer.camera.center, [0.5, 0.5, 0.5])
    assert np.allclose(viewer.camera.default_center, viewer.camera.center)
    assert viewer.camera.zoom == 1.0


def test_missing_file_raises(viewer, tmp_path):
    with pytest.raises(MissingFileError):
        viewer.load(tmp_path / "absent.stl")
    assert viewer.current_file is None
    assert viewer.mesh is None
    assert viewer.status == ""


def test_bad_file_raises(viewer, tmp_path):
    path = tmp_path / "bad.stl"
    path.write_bytes(b"garbage")
    with pytest.raises(BadStlError):
        viewer.load(path)
    assert viewer.recent.files() == []


def test_reload_without_file(viewer):
    assert viewer.reload() is False


def test_reload_keeps_camera(viewer, tmp_path):
    path = write_binary(tmp_path / "model.stl")
    viewer.load(path)
    viewer.camera.center = np.array([9.0, 9.0, 9.0])
    assert viewer.reload() is True
    assert np.allclose(viewer.camera.center, [9.0, 9.0, 9.0])
    assert viewer.current_file == str(path)


def test_prev_next_walk_folder(viewer, tmp_path):
    for name in ("a1.stl", "a2.stl", "a10.stl"):
        write_binary(tmp_path / name)
    viewer.load(tmp_path / "a2.stl")

    assert viewer.load_next() is True
    assert viewer.current_file == str(tmp_path / "a10.stl")
    assert viewer.load_next() is False

    assert viewer.load_prev() is True
    assert viewer.current_file == str(tmp_path / "a2.stl")
    assert viewer.load_prev() is True
    assert viewer.current_file == str(tmp_path / "a1.stl")
    assert viewer.load_prev() is False


def test_prev_without_current_file(viewer):
    assert viewer.load_prev() is False
    assert viewer.load_next() is False


def test_persisted_settings_are_applied(settings):
    settings.set("drawMode", 1)
    settings.set("projection", "orthographic")
    settings.set("drawAxes", True)
    settings.set("invertZoom", True)
    view = Viewer(settings)
    assert view.draw_mode is DrawMode.WIREFRAME
    assert view.camera.perspective == P_ORTHOGRAPHIC
    assert view.draw_axes is True
    assert view.camera.invert_zoom is True


def test_defaults_and_invalid_draw_mode(settings):
    settings.set("drawMode", 99)
    view = Viewer(settings)
    assert view.draw_mode is DrawMode.SHADED
    assert view.camera.perspective == P_PERSPECTIVE
    assert view.autoreload is True
    assert view.draw_axes is False


@pytest.mark.parametrize("mode", list(DrawMode))
def test_render_size(viewer, tmp_path, mode):
    viewer.load(write_binary(tmp_path / "model.stl"))
    viewer.draw_mode = mode
    viewer.draw_axes = True
    image = pixels(viewer.render(400, 300))
    assert image.shape == (300, 400, 4)


def test_render_shows_mesh(viewer, tmp_path):
    empty_a = pixels(viewer.render(200, 200))
    empty_b = pixels(viewer.render(200, 200))
    assert np.array_equal(empty_a, empty_b)

    viewer.load(write_binary(tmp_path / "model.stl"))
    with_mesh = pixels(viewer.render(200, 200))
    assert with_mesh.shape == empty_a.shape
    assert np.any(with_mesh != empty_a)


def test_render_rejects_bad_size(viewer):
    with pytest.raises(ValueError):
        viewer.render(0, 100)


def test_save_screenshot_appends_png(viewer, tmp_path):
    path = viewer.save_screenshot(tmp_path / "shot")
    assert path == str(tmp_path / "shot") + ".png"
    with open(path, "rb") as handle:
        assert handle.read(4) == b"\x89PNG"


def test_save_screenshot_keeps_png_name(viewer, tmp_path):
    target = str(tmp_path / "view.png")
    assert viewer.save_screenshot(target) == target
    with open(target, "rb") as handle:
        assert handle.read(4) == b"\x89PNG"


def test_main_screenshot(tmp_path):
    model = write_binary(tmp_path / "model.stl")
    settings_path = tmp_path / "settings.json"
    out = tmp_path / "out.png"
    result = main([str(model), "--settings", str(settings_path),
                   "--screenshot", str(out), "--size", "120x80"])
    assert result == 0
    assert out.read_bytes()[:4] == b"\x89PNG"
    assert Settings(settings_path).get("recentFiles") == [str(model)]


def test_main_missing_file(tmp_path, capsys):
    out = tmp_path / "out.png"
    result = main([str(tmp_path / "absent.stl"), "--settings",
                   str(tmp_path / "settings.json"), "--screenshot", str(out)])
    assert result == 1
    assert "missing" in capsys.readouterr().err
    assert out.exists()


def test_main_expands_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    model = write_binary(tmp_path / "model.stl")
    settings_path = tmp_path / "settings.json"
    result = main(["~/model.stl", "--settings", str(settings_path),
                   "--screenshot", str(tmp_path / "shot.png")])
    assert result == 0
    recent = Settings(settings_path).get("recentFiles")
    assert len(recent) == 1
    assert recent[0].endswith("model.stl")
    assert model.exists()


def test_main_rejects_bad_size(tmp_path):
    with pytest.raises(SystemExit):
        main(["--settings", str(tmp_path / "s.json"), "--size", "wide"])