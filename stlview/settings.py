"""Persistent settings and lighting preferences."""

from __future__ import annotations

import json
import os
from pathlib import Path

from platformdirs import user_config_dir

from .camera import light_directions

AMBIENT_COLOR = "ambientColor"
AMBIENT_FACTOR = "ambientFactor"
DIRECTIVE_COLOR = "directiveColor"
DIRECTIVE_FACTOR = "directiveFactor"
CURRENT_LIGHT_DIRECTION = "currentLightDirection"

DEFAULT_AMBIENT_COLOR = (0.22, 0.8, 1.0)
DEFAULT_DIRECTIVE_COLOR = (1.0, 1.0, 1.0)
DEFAULT_AMBIENT_FACTOR = 0.67
DEFAULT_DIRECTIVE_FACTOR = 0.5
DEFAULT_LIGHT_DIRECTION = 1


def default_settings_path():
    """Location of the user's settings file."""
    return Path(user_config_dir("stlview")) / "settings.json"


class Settings:
    """A small key/value store kept in a JSON file."""

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else default_settings_path()
        self._values = {}
        try:
            with open(self.path, encoding="utf-8") as handle:
                loaded = json.load(handle)
        except (OSError, ValueError):
            loaded = {}
        if isinstance(loaded, dict):
            self._values = loaded

    def get(self, key, default=None):
        """The stored value for ``key``, or ``default`` when unset."""
        return self._values.get(key, default)

    def set(self, key, value):
        """Store ``value`` under ``key`` and write the file."""
        self._values[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temporary = self.path.with_name(self.path.name + ".tmp")
        with open(temporary, "w", encoding="utf-8") as handle:
            json.dump(self._values, handle, indent=2, sort_keys=True)
        os.replace(temporary, self.path)

    def __contains__(self, key):
        return key in self._values


def _parse_color(value):
    try:
        color = tuple(float(component) for component in value)
    except (TypeError, ValueError):
        raise ValueError(f"not a colour: {value!r}") from None
    if len(color) != 3 or not all(0.0 <= c <= 1.0 for c in color):
        raise ValueError(f"colour must be three components in [0, 1]: {value!r}")
    return color


def _stored_color(settings, key, default):
    try:
        return _parse_color(settings.get(key, default))
    except ValueError:
        return default


def _stored_float(settings, key, default):
    try:
        return float(settings.get(key, default))
    except (TypeError, ValueError):
        return default


class LightingPrefs:
    """Ambient and directional light settings for the lit draw mode."""

    def __init__(self, settings):
        self.settings = settings
        self._directions = light_directions()
        self._ambient_color = _stored_color(
            settings, AMBIENT_COLOR, DEFAULT_AMBIENT_COLOR)
        self._directive_color = _stored_color(
            settings, DIRECTIVE_COLOR, DEFAULT_DIRECTIVE_COLOR)
        self._ambient_factor = _stored_float(
            settings, AMBIENT_FACTOR, DEFAULT_AMBIENT_FACTOR)
        self._directive_factor = _stored_float(
            settings, DIRECTIVE_FACTOR, DEFAULT_DIRECTIVE_FACTOR)

        direction = settings.get(CURRENT_LIGHT_DIRECTION, DEFAULT_LIGHT_DIRECTION)
        if (not isinstance(direction, int) or isinstance(direction, bool)
                or not 0 <= direction < len(self._directions)):
            direction = DEFAULT_LIGHT_DIRECTION
        self._light_direction = direction

    @property
    def ambient_color(self):
        """Ambient light colour as rgb floats in [0, 1]."""
        return self._ambient_color

    @ambient_color.setter
    def ambient_color(self, value):
        self._ambient_color = _parse_color(value)
        self.settings.set(AMBIENT_COLOR, list(self._ambient_color))

    @property
    def ambient_factor(self):
        """Weight of the ambient light."""
        return self._ambient_factor

    @ambient_factor.setter
    def ambient_factor(self, value):
        self._ambient_factor = float(value)
        self.settings.set(AMBIENT_FACTOR, self._ambient_factor)

    @property
    def directive_color(self):
        """Directional light colour as rgb floats in [0, 1]."""
        return self._directive_color

    @directive_color.setter
    def directive_color(self, value):
        self._directive_color = _parse_color(value)
        self.settings.set(DIRECTIVE_COLOR, list(self._directive_color))

    @property
    def directive_factor(self):
        """Weight of the directional light."""
        return self._directive_factor

    @directive_factor.setter
    def directive_factor(self, value):
        self._directive_factor = float(value)
        self.settings.set(DIRECTIVE_FACTOR, self._directive_factor)

    @property
    def direction_names(self):
        """Names of the available light directions, in index order."""
        return [name for name, _ in self._directions]

    @property
    def light_direction(self):
        """Index of the chosen light direction."""
        return self._light_direction

    @light_direction.setter
    def light_direction(self, index):
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError("light direction must be an integer index")
        if not 0 <= index < len(self._directions):
            raise ValueError(f"light direction out of range: {index}")
        self._light_direction = index
        self.settings.set(CURRENT_LIGHT_DIRECTION, index)

    @property
    def direction_vector(self):
        """The chosen light direction as an (x, y, z) tuple."""
        return self._directions[self._light_direction][1]

    def reset_ambient(self):
        """Restore the default ambient colour and factor."""
        self.ambient_color = DEFAULT_AMBIENT_COLOR
        self.ambient_factor = DEFAULT_AMBIENT_FACTOR

    def reset_directive(self):
        """Restore the default directional colour and factor."""
        self.directive_color = DEFAULT_DIRECTIVE_COLOR
        self.directive_factor = DEFAULT_DIRECTIVE_FACTOR

    def reset_direction(self):
        """Restore the default light direction."""
        self.light_direction = DEFAULT_LIGHT_DIRECTION