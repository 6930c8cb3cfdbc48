"""Tests for configuration and credential loading."""

import pytest

from veracode_tools.core import config as config_module
from veracode_tools.core.config import _deep_merge, load_config, load_credentials
from veracode_tools.core.errors import ConfigurationError


def test_default_config_file_matches_builtin_sections():
    cfg = load_config(env={})
    builtin = config_module._builtin_defaults()
    assert set(cfg) == set(builtin)
    assert cfg["findings"]["overview_size"] == 300
    assert cfg["sca"]["summary_max_pages"] == 2
    assert cfg["resolution"]["strict_names"] is False


def test_region_profile_overlays_base_url():
    cfg = load_config("eu", env={})
    assert cfg["api"]["base_url"] == "https://api.veracode.eu/"
    assert cfg["api"]["timeout"] == 30


def test_unknown_profile_falls_back_to_defaults():
    cfg = load_config("mars", env={})
    assert cfg["api"]["base_url"] == "https://api.veracode.com/"


def test_environment_overrides_urls():
    cfg = load_config(env={"VERACODE_API_BASE_URL": "https://api.veracode.us/",
                           "VERACODE_PLATFORM_URL": "https://portal.example.com"})
    assert cfg["api"]["base_url"] == "https://api.veracode.us/"
    assert cfg["api"]["platform_url"] == "https://portal.example.com"


def test_missing_config_dir_uses_builtin(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "CONFIG_DIR", tmp_path)
    cfg = load_config(env={})
    assert cfg == config_module._builtin_defaults()


def test_load_credentials():
    creds = load_credentials({"VERACODE_API_ID": "id", "VERACODE_API_KEY": "ab" * 16})
    assert creds.api_id == "id"
    assert "ab" not in repr(creds)


def test_missing_credentials_named():
    with pytest.raises(ConfigurationError, match="VERACODE_API_KEY"):
        load_credentials({"VERACODE_API_ID": "id"})


def test_deep_merge_keeps_nested_keys():
    merged = _deep_merge({"api": {"a": 1, "b": 2}, "x": 1}, {"api": {"b": 3}})
    assert merged == {"api": {"a": 1, "b": 3}, "x": 1}
