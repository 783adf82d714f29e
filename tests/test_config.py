"""Tests for settings loading and credential resolution."""
from pathlib import Path

import pytest

from nejobs.config import (
    API_KEY_STORAGE_KEY,
    DEFAULT_REGIONS,
    Settings,
    load_settings,
    resolve_api_key,
)
from nejobs.errors import ConfigurationError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "nope.yaml")
        assert settings.regions == DEFAULT_REGIONS
        assert settings.rate_limit_max_requests == 10
        assert settings.cache_ttl_seconds == 300

    def test_overrides(self, tmp_path):
        settings = load_settings(_write(tmp_path, """
regions:
  vt:
    name: Vermont
    cities: [Stowe, Burlington]
rate_limit_max_requests: 5
emphasis_topics: [Hiking]
default_employment_types: [fulltime, parttime]
strict_qualification: true
data_dir: /tmp/nejobs-data
colour: blue
"""))
        (region,) = settings.regions
        assert region.code == "VT"
        assert region.primary_city == "Stowe"
        assert settings.rate_limit_max_requests == 5
        assert settings.emphasis_topics == ("hiking",)
        assert settings.default_employment_types == ("FULLTIME", "PARTTIME")
        assert settings.strict_qualification is True
        assert settings.data_dir == Path("/tmp/nejobs-data")
        assert not hasattr(settings, "colour")

    def test_empty_file(self, tmp_path):
        assert load_settings(_write(tmp_path, "")).regions == DEFAULT_REGIONS

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(_write(tmp_path, "regions: [unclosed"))

    def test_non_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(_write(tmp_path, "- just\n- a list\n"))


class TestSettings:
    def test_region_lookup(self):
        settings = Settings()
        assert settings.region("ma").name == "Massachusetts"
        assert settings.region("TX") is None
        assert settings.region_codes == ["CT", "MA", "ME", "NH", "RI", "VT"]


class TestResolveApiKey:
    def test_explicit_wins(self, monkeypatch, store):
        monkeypatch.setenv("JSEARCH_API_KEY", "env")
        store.set(API_KEY_STORAGE_KEY, "stored")
        assert resolve_api_key(" explicit ", store) == "explicit"

    def test_env_before_store(self, monkeypatch, store):
        monkeypatch.setenv("JSEARCH_API_KEY", "env")
        store.set(API_KEY_STORAGE_KEY, "stored")
        assert resolve_api_key(None, store) == "env"

    def test_store_last(self, store):
        store.set(API_KEY_STORAGE_KEY, "stored")
        assert resolve_api_key(None, store) == "stored"

    def test_nothing(self, store):
        assert resolve_api_key(None, store) == ""
        assert resolve_api_key() == ""
