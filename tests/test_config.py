import json

import pytest

from flowcanvas import config
from flowcanvas.config import THEMES, get_theme, get_theme_name, load_config, set_theme_name


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setattr(config, "get_config_path", lambda: path)
    monkeypatch.delenv("FLOWCANVAS_THEME", raising=False)
    return path


def test_defaults_without_config_file():
    assert load_config() == {}
    assert get_theme_name() == "dark"
    assert get_theme() == THEMES["dark"]


def test_set_theme_name_persists(isolated_config):
    set_theme_name("light")
    assert json.loads(isolated_config.read_text())["theme"] == "light"
    assert get_theme_name() == "light"


def test_env_overrides_config(monkeypatch):
    set_theme_name("light")
    monkeypatch.setenv("FLOWCANVAS_THEME", "Dark")
    assert get_theme_name() == "dark"


def test_unreadable_config_is_ignored(isolated_config):
    isolated_config.write_text("{not json")
    assert load_config() == {}


def test_unknown_theme_falls_back(caplog):
    assert get_theme("neon") == THEMES["dark"]
    assert "Unknown theme" in caplog.text


def test_token_overrides():
    cfg = {"themes": {"light": {"connection": "#000000", "bogus": "x"}}}
    tokens = get_theme("light", cfg)
    assert tokens["connection"] == "#000000"
    assert "bogus" not in tokens
    assert THEMES["light"]["connection"] != "#000000"
