"""
Tests for ConfigLoader and the process-wide default config
"""
import pytest
import requests

from validatable_lib import (
    ConfigLoader,
    RuleCollection,
    ValidatableObject,
    get_default_config,
    reset_default_config,
)
from validatable_lib import config_loader
from validatable_lib.config_loader import CONFIG_ENV_VAR

DEFAULTS = {
    "atomic_initialization": True,
    "coalesce_reentrant_changes": False,
    "check_property_names": False,
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from a developer's override and the cached default."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    reset_default_config()
    yield
    reset_default_config()


@pytest.fixture
def override_file(tmp_path):
    path = tmp_path / "engine-config.yaml"
    path.write_text("coalesce_reentrant_changes: true\n")
    return path


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class TestBundledConfig:
    """Test loading the YAML shipped with the package."""

    def test_defaults(self):
        loader = ConfigLoader()
        assert loader.get_engine_config() == DEFAULTS
        assert loader.default_config_path.endswith("engine-config.yaml")

    def test_returns_copy(self):
        loader = ConfigLoader()
        loader.get_engine_config()["atomic_initialization"] = False
        assert loader.get_engine_config()["atomic_initialization"] is True


class TestOverrides:
    """Test merging an override document over the defaults."""

    def test_absolute_path(self, override_file):
        config = ConfigLoader(str(override_file)).get_engine_config()
        assert config["coalesce_reentrant_changes"] is True
        assert config["atomic_initialization"] is True

    def test_relative_path(self, override_file, monkeypatch):
        monkeypatch.chdir(override_file.parent)
        config = ConfigLoader(override_file.name).get_engine_config()
        assert config["coalesce_reentrant_changes"] is True

    def test_file_uri(self, override_file):
        config = ConfigLoader(override_file.as_uri()).get_engine_config()
        assert config["coalesce_reentrant_changes"] is True

    def test_environment_variable(self, override_file, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(override_file))
        assert ConfigLoader().get_engine_config()["coalesce_reentrant_changes"] is True

    def test_empty_override(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigLoader(str(path)).get_engine_config() == DEFAULTS

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported URI scheme"):
            ConfigLoader("ftp://example.com/engine-config.yaml")


class TestSchemaValidation:
    """Invalid documents are rejected with ValueError."""

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("atomic_initialisation: true\n")
        with pytest.raises(ValueError, match="Invalid engine config"):
            ConfigLoader(str(path))

    def test_wrong_type(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("check_property_names: sometimes\n")
        with pytest.raises(ValueError, match="check_property_names"):
            ConfigLoader(str(path))


class TestRemoteConfig:
    """Test http(s) configs fetched with requests and cached on disk."""

    URI = "https://config.example.com/engine-config.yaml"

    def test_fetch_and_cache(self, tmp_path, monkeypatch):
        calls = []

        def fake_get(uri, timeout):
            calls.append(uri)
            return FakeResponse("check_property_names: true\n")

        monkeypatch.setattr(config_loader.requests, "get", fake_get)

        first = ConfigLoader(self.URI, cache_dir=tmp_path).get_engine_config()
        second = ConfigLoader(self.URI, cache_dir=tmp_path).get_engine_config()

        assert first["check_property_names"] is True
        assert second == first
        assert calls == [self.URI]
        assert len(list(tmp_path.glob("config_*.yaml"))) == 1

    def test_fetch_failure(self, tmp_path, monkeypatch):
        def fake_get(uri, timeout):
            raise requests.ConnectionError("unreachable")

        monkeypatch.setattr(config_loader.requests, "get", fake_get)

        with pytest.raises(RuntimeError, match="Failed to fetch config"):
            ConfigLoader(self.URI, cache_dir=tmp_path)

    def test_http_error_status(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            config_loader.requests, "get",
            lambda uri, timeout: FakeResponse("", status_code=404),
        )

        with pytest.raises(RuntimeError):
            ConfigLoader(self.URI, cache_dir=tmp_path)


class TestDefaultConfig:
    """Test the lazily loaded process-wide config."""

    def test_loaded_once(self):
        assert get_default_config() is get_default_config()
        assert get_default_config() == DEFAULTS

    def test_reset_reloads(self, override_file, monkeypatch):
        get_default_config()
        monkeypatch.setenv(CONFIG_ENV_VAR, str(override_file))
        reset_default_config()

        assert get_default_config()["coalesce_reentrant_changes"] is True

    def test_used_when_instance_has_no_config(self, override_file, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(override_file))
        rules = RuleCollection()

        class Counter(ValidatableObject):
            def __init__(self):
                super().__init__(rules)

        instance = Counter()
        assert instance.get_config()["coalesce_reentrant_changes"] is True
