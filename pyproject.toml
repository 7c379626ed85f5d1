[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stlview"
version = "0.11.0"
description = "A fast viewer for .stl mesh files"
requires-python = ">=3.10"
keywords = ["stl", "mesh", "3d", "viewer", "cad"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Manufacturing",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: Viewers",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "matplotlib",
    "platformdirs",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
stlview = "stlview.viewer:main"

[tool.hatch.build.targets.wheel]
packages = ["stlview"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
