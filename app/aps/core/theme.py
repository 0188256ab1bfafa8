"""Console colors for aps.

Defaults live on ThemeColors. ``~/.config/aps/theme.toml`` may override any
subset of them under a ``[colors]`` table; a broken override is logged and
ignored so output never fails because of a theme.
"""

import functools
import logging
import re
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from aps.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")

# Rich style name -> (ThemeColors field, extra style attributes)
STYLE_MAP: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "border": ("border", ""),
    "bold_header": ("header", "bold"),
    "info": ("info", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "synced": ("synced", ""),
    "upgrade": ("upgrade", ""),
    "entry.id": ("text", "bold"),
}


class ThemeColors(BaseModel):
    """Hex colors (#RGB or #RRGGBB) used by the aps consoles."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"
    info: str = "#0ec1c8"
    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    synced: str = "#c1ff62"
    upgrade: str = "#0e8ac8"

    @field_validator("*", mode="before")
    @classmethod
    def _check_hex(cls, value: object) -> str:
        if not isinstance(value, str) or not HEX_COLOR.fullmatch(value.strip()):
            msg = f"expected a hex color like '#1e90ff', got {value!r}"
            raise ValueError(msg)
        return value.strip()


def read_theme_overrides(path: Path) -> dict[str, str]:
    """Read the ``[colors]`` table of a theme file.

    Returns an empty mapping when the file is absent or unusable.
    """
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: 'colors' must be a table", path)
        return {}
    return {str(name): value for name, value in colors.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Return the default colors merged with the user's overrides."""
    path = get_user_theme_path()
    overrides = read_theme_overrides(path)
    if not overrides:
        return ThemeColors()
    try:
        colors = ThemeColors(**overrides)
    except ValidationError as e:
        logger.warning("Invalid colors in %s, using defaults: %s", path, e)
        return ThemeColors()
    logger.debug("Applied %d color override(s) from %s", len(overrides), path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme for the given colors (the loaded ones by default)."""
    colors = colors or load_theme()
    styles = {
        name: f"{extra} {getattr(colors, field)}".strip()
        for name, (field, extra) in STYLE_MAP.items()
    }
    return Theme(styles)


@functools.cache
def get_theme() -> Theme:
    """Return the process-wide Rich theme, loading it on first use."""
    return get_rich_theme()
