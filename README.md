# stlview

A viewer for `.stl` mesh files, in both the ASCII and the binary format,
drawn with matplotlib.

## Installing

    pip install .

## Viewing a file

    stlview model.stl

A path starting with `~` is expanded to your home directory. Without a file
name the window opens with nothing loaded. If the file cannot be loaded, the
error is printed, shown in the window's status line, and the command exits
with status 1 once the window is closed.

Options:

- `--settings FILE` — use this settings file instead of the default one in
  your user configuration directory (`settings.json` under the `stlview`
  directory).
- `--screenshot IMAGE` — render the view off-screen, save it to `IMAGE` and
  exit without opening a window. Names ending in `.png` or `.jpg` are kept;
  any other name gets `.png` added.
- `--size WIDTHxHEIGHT` — the view size in pixels (default `600x400`).

While the window is open:

- drag with the left mouse button to rotate the model (arcball rotation);
- drag with the right mouse button to pan;
- scroll to zoom about the cursor;
- `Left` / `Right` load the previous / next `.stl` file in the same folder,
  in natural order ("file2" before "file10");
- `0` isometric, `1` top, `2` bottom, `3` front, `4` back, `5` left,
  `6` right, `9` re-centre the model;
- `F5` reloads the file;
- `m` cycles the draw mode (shaded, wireframe, surface angle, lit by an
  ambient and a directional light);
- `p` switches between perspective and orthographic projection;
- `x` toggles the axes and the mesh summary (triangle count and bounds);
- `i` inverts the zoom direction.

When autoreload is on (the default), the window checks the file twice a
second and reloads it, keeping the camera, when it changes.

Opened files go into a list of recent files (at most eight). The projection,
draw mode, axes, zoom direction and lighting choices are stored in the
settings file between sessions.

## Using it from Python

```python
from stlview.loader import load_stl

mesh = load_stl("model.stl")
print(mesh.tri_count(), "triangles")
print(mesh.bounds())
```

`load_stl` waits until the file stops growing, then parses it. It raises
`MissingFileError` when the file cannot be opened, `BadStlError` when it is
malformed and `EmptyMeshError` when it holds no triangles; all three derive
from `StlError`. `parse_stl` does the same for bytes already in memory.
Identical vertices are merged, so a `Mesh` holds a vertex table and triangle
indices; `Mesh.triangles()` gives the corners back as an `(n, 3, 3)` array.

`stlview.loader.Loader` loads on a background thread and calls its
`on_mesh`, `on_error` and `on_loaded` callbacks.

`stlview.viewer.Viewer` holds the viewer state. `Viewer.render(width, height)`
returns a matplotlib figure of the current view, `Viewer.save_screenshot`
writes it to an image file, and `Viewer.show()` opens the interactive window.
`stlview.settings.LightingPrefs` sets the colours, weights and direction of
the lights used by the lit draw mode, saving each change to the settings.

## What it does not do

There are no menus or dialogs: files are opened from the command line or
with the arrow keys, the recent-files list is kept but cannot be opened from
the window, files cannot be dropped onto the window, and lighting can only
be changed from Python or by editing the settings file.

## Running the tests

    pip install .[test]
    pytest