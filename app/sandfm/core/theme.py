"""Console colors for listings, results and messages.

The bundled data/theme.toml supplies defaults; a theme.toml in the
sandfm config directory may override any subset of them.
"""

import logging
import re
import tomllib
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from rich.theme import Theme

from sandfm.core.paths import get_theme_path

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# Rich style name -> (color field, extra attributes)
_STYLES: dict[str, tuple[str, str]] = {
    "muted": ("muted", ""),
    "border": ("border", ""),
    "bold_header": ("header", "bold"),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "folder": ("folder", "bold"),
    "file": ("file", ""),
}


class ThemeColors(BaseModel):
    """Hex colors used by the sandfm console (#RGB or #RRGGBB)."""

    model_config = ConfigDict(extra="forbid")

    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    folder: str = "#69B9A1"
    file: str = "#ffffff"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: ValidationInfo) -> str:
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        if not color.startswith("#"):
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        if len(color) not in (4, 7):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        if not _HEX_RE.match(color):
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg)
        return color


def get_bundled_theme_path() -> Path:
    """Path of the theme.toml shipped inside the sandfm.data package."""
    return Path(str(resources.files("sandfm.data").joinpath("theme.toml")))


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped. Returns None when the file is
    missing, unreadable or malformed.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {key: value for key, value in colors.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge the user's overrides onto the bundled colors.

    An invalid merged theme falls back to the built-in defaults.
    """
    colors = _load_toml_colors(get_bundled_theme_path())
    if colors is None:
        logger.error("Bundled theme is missing or unreadable")
        colors = {}

    user_path = get_theme_path()
    overrides = _load_toml_colors(user_path)
    if overrides:
        logger.debug("Applying theme overrides from %s", user_path)
        colors = {**colors, **overrides}

    try:
        return ThemeColors(**colors)
    except ValueError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme for the given colors (loaded when omitted)."""
    if colors is None:
        colors = load_theme()
    styles = {
        name: f"{attrs} {getattr(colors, field)}".strip()
        for name, (field, attrs) in _STYLES.items()
    }
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
