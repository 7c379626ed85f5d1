"""Reading ASCII and binary STL files into meshes."""

from __future__ import annotations

import io
import os
import struct
import threading
import time

import numpy as np

from .mesh import Mesh, mesh_from_verts

_HEADER_SIZE = 80
_FACET_SIZE = 50
_FACET_DTYPE = np.dtype(
    [("normal", "<f4", (3,)), ("corners", "<f4", (3, 3)), ("attribute", "<u2")]
)


class StlError(Exception):
    """Base class for STL loading failures."""


class BadStlError(StlError):
    """The file is invalid or corrupted."""


class EmptyMeshError(StlError):
    """The file is syntactically correct but holds no triangles."""


class MissingFileError(StlError):
    """The file could not be opened."""


def _simplified(line: bytes) -> bytes:
    return b" ".join(line.split())


def read_stl_ascii(stream) -> Mesh:
    """Read an ASCII STL from a binary stream positioned at the file start."""
    stream.readline()
    verts = []

    while True:
        line = stream.readline()
        if not line:
            break
        line = _simplified(line)
        if line.startswith(b"endsolid"):
            break
        if not line.startswith(b"facet normal") or not _simplified(
            stream.readline()
        ).startswith(b"outer loop"):
            raise BadStlError("expected a facet")

        for _ in range(3):
            fields = stream.readline().split()
            if len(fields) < 4 or fields[0] != b"vertex":
                raise BadStlError("expected a vertex")
            try:
                verts.append(tuple(float(value) for value in fields[1:4]))
            except ValueError:
                raise BadStlError("bad vertex coordinate") from None

        if not stream.readline().strip().startswith(b"endloop") or not (
            stream.readline().strip().startswith(b"endfacet")
        ):
            raise BadStlError("unterminated facet")

    return mesh_from_verts(verts)


def read_stl_binary(data: bytes) -> Mesh:
    """Read a binary STL from the whole file contents."""
    if len(data) < _HEADER_SIZE + 4:
        raise BadStlError("file too short for a binary STL")
    (tri_count,) = struct.unpack_from("<I", data, _HEADER_SIZE)
    if len(data) != _HEADER_SIZE + 4 + tri_count * _FACET_SIZE:
        raise BadStlError("file size does not match triangle count")

    facets = np.frombuffer(
        data, dtype=_FACET_DTYPE, count=tri_count, offset=_HEADER_SIZE + 4
    )
    return mesh_from_verts(facets["corners"].reshape(-1, 3))


def parse_stl(data: bytes) -> Mesh:
    """Parse STL file contents, detecting ASCII or binary format."""
    if data[:5] == b"solid":
        stream = io.BytesIO(data)
        stream.readline()
        line = stream.readline().strip()
        if line.startswith(b"facet") or line.startswith(b"endsolid"):
            stream.seek(0)
            return read_stl_ascii(stream)
        # A binary file whose header happens to begin with "solid".
    return read_stl_binary(data)


def load_stl(path, settle=0.1) -> Mesh:
    """Load a mesh from ``path``, waiting until the file stops growing.

    Raises MissingFileError, BadStlError or EmptyMeshError.
    """
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise MissingFileError(str(path)) from exc

    with handle:
        if settle > 0:
            size = os.fstat(handle.fileno()).st_size
            while True:
                time.sleep(settle)
                previous, size = size, os.fstat(handle.fileno()).st_size
                if size == previous:
                    break
        data = handle.read()

    mesh = parse_stl(data)
    if mesh.is_empty():
        raise EmptyMeshError(str(path))
    return mesh


class Loader:
    """Loads an STL file on a background thread and reports through callbacks."""

    def __init__(self, filename, is_reload=False, on_mesh=None, on_error=None,
                 on_loaded=None):
        self.filename = filename
        self.is_reload = is_reload
        self.on_mesh = on_mesh
        self.on_error = on_error
        self.on_loaded = on_loaded
        self.mesh = None
        self.error = None
        self._thread = None

    def run(self):
        """Load the file in the calling thread and fire the callbacks."""
        try:
            mesh = load_stl(self.filename)
        except StlError as exc:
            self.error = exc
            if self.on_error is not None:
                self.on_error(exc)
            return
        self.mesh = mesh
        if self.on_mesh is not None:
            self.on_mesh(mesh, self.is_reload)
        if self.on_loaded is not None:
            self.on_loaded(self.filename)

    def start(self):
        """Start loading on a daemon thread."""
        if self._thread is not None:
            raise RuntimeError("loader already started")
        self._thread = threading.Thread(target=self.run, daemon=True)
        self._thread.start()

    def join(self, timeout=None):
        """Wait for the background load to finish."""
        if self._thread is None:
            raise RuntimeError("loader not started")
        self._thread.join(timeout)