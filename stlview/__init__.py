"""A viewer for ASCII and binary .stl mesh files, with a loader and mesh tools."""

__version__ = "0.11.0"