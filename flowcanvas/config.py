"""
Configuration management for FlowCanvas.

Handles persistent configuration including:
- Theme selection (dark / light)
- Per-theme color token overrides

Config is stored in config.json next to the executable/project root.
The FLOWCANVAS_THEME environment variable takes precedence over the stored theme.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from flowcanvas.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_THEME = "dark"

# Accent color shared by both themes (selection, handles, in-progress edges)
ACCENT_COLOR = "#4353FF"

THEMES: Dict[str, Dict[str, str]] = {
    "dark": {
        "canvas_bg": "#1a1a1a",
        "grid_dot": "#3f3f46",
        "connection": "#64748b",
        "endpoint_selected": "#FFFFFF",
        "accent": ACCENT_COLOR,
    },
    "light": {
        "canvas_bg": "#f8f9fa",
        "grid_dot": "#e5e7eb",
        "connection": "#334155",
        "endpoint_selected": "#f0f9ff",
        "accent": ACCENT_COLOR,
    },
}


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def get_theme_name(config: Optional[dict] = None) -> str:
    """
    Get the active theme name.

    Priority:
    1. Environment variable FLOWCANVAS_THEME
    2. "theme" stored in config.json
    3. DEFAULT_THEME
    """
    env_theme = os.environ.get("FLOWCANVAS_THEME")
    if env_theme:
        return env_theme.strip().lower()

    if config is None:
        config = load_config()
    return str(config.get("theme", DEFAULT_THEME)).lower()


def set_theme_name(theme: str, config_path: Optional[Path] = None) -> None:
    """Persist the theme name to config.json."""
    config = load_config(config_path)
    config["theme"] = theme
    save_config(config, config_path)


def get_theme(name: Optional[str] = None, config: Optional[dict] = None) -> Dict[str, str]:
    """
    Return the color tokens for a theme.

    Unknown theme names fall back to the default theme. Overrides found under
    config.json["themes"][name] replace individual tokens.
    """
    if config is None:
        config = load_config()
    name = (name or get_theme_name(config)).lower()

    if name not in THEMES:
        logger.warning(f"Unknown theme '{name}', using '{DEFAULT_THEME}'")
        name = DEFAULT_THEME

    tokens = dict(THEMES[name])
    overrides = config.get("themes", {}).get(name, {})
    if isinstance(overrides, dict):
        tokens.update({k: str(v) for k, v in overrides.items() if k in tokens})
    return tokens
