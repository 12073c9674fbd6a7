"""Engine configuration loading with URI fetching and caching."""

import copy
import hashlib
import logging
import os
import urllib.parse
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import requests
import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VALIDATABLE_LIB_CONFIG"

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "atomic_initialization": {"type": "boolean"},
        "coalesce_reentrant_changes": {"type": "boolean"},
        "check_property_names": {"type": "boolean"},
    },
    "additionalProperties": False,
}


class ConfigLoader:
    """Loads the bundled engine config and merges an optional override on top."""

    CACHE_DIR = Path.home() / ".cache" / "validatable-lib"
    FETCH_TIMEOUT = 10

    def __init__(self, config_uri: Optional[str] = None, cache_dir: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_uri: Optional override config. Relative path, file:// or
                http(s)://. Falls back to the VALIDATABLE_LIB_CONFIG
                environment variable, then to the bundled defaults only.
            cache_dir: Where remote configs are cached (defaults to CACHE_DIR)

        Raises:
            ValueError: If the URI scheme is unsupported or the merged
                config does not match CONFIG_SCHEMA
            RuntimeError: If a remote config cannot be fetched
        """
        self.cache_dir = Path(cache_dir) if cache_dir else self.CACHE_DIR

        config_file = files("validatable_lib").joinpath("engine-config.yaml")
        self.default_config_path = str(config_file)
        with config_file.open("r") as f:
            defaults = yaml.safe_load(f) or {}

        self.config_uri = config_uri or os.environ.get(CONFIG_ENV_VAR)
        overrides = {}
        if self.config_uri:
            overrides = self._load_config_from_uri(self.config_uri) or {}
            logger.info(f"Loaded engine config override from {self.config_uri}")

        merged = dict(defaults)
        merged.update(overrides)
        self._validate(merged)
        self.engine_config = merged

    def _validate(self, config: Dict[str, Any]) -> None:
        """Check a config document against CONFIG_SCHEMA."""
        try:
            jsonschema.validate(instance=config, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            error_path = " -> ".join(str(p) for p in e.path) if e.path else "root"
            raise ValueError(f"Invalid engine config at {error_path}: {e.message}") from e

    def _load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file from disk."""
        with open(path) as f:
            return yaml.safe_load(f)

    def _load_config_from_uri(self, uri: str) -> Dict[str, Any]:
        """
        Load config from URI (with caching for remote files).

        Supports:
        - Relative paths - resolved against the working directory
        - file:// - Local filesystem (absolute paths)
        - https:// / http:// - Remote, cached by URI hash
        """
        parsed = urllib.parse.urlparse(uri)

        if not parsed.scheme:
            return self._load_yaml(os.path.abspath(uri))

        if parsed.scheme == "file":
            return self._load_yaml(urllib.parse.unquote(parsed.path))

        if parsed.scheme in ("http", "https"):
            cache_key = hashlib.sha256(uri.encode()).hexdigest()
            cache_path = self.cache_dir / f"config_{cache_key}.yaml"

            if cache_path.exists():
                logger.debug(f"Using cached engine config {cache_path}")
                return self._load_yaml(str(cache_path))

            content = self._fetch_uri(uri)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path.write_text(content)
            return yaml.safe_load(content)

        raise ValueError(f"Unsupported URI scheme: {parsed.scheme} in {uri}")

    def _fetch_uri(self, uri: str) -> str:
        """Fetch content from HTTP/HTTPS URI."""
        try:
            response = requests.get(uri, timeout=self.FETCH_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            raise RuntimeError(f"Failed to fetch config from {uri}: {e}") from e

    def get_engine_config(self) -> Dict[str, Any]:
        """Return a copy of the merged engine configuration."""
        return copy.deepcopy(self.engine_config)


_default_config: Optional[Dict[str, Any]] = None


def get_default_config() -> Dict[str, Any]:
    """Return the process-wide engine config, loading it on first use."""
    global _default_config
    if _default_config is None:
        _default_config = ConfigLoader().get_engine_config()
    return _default_config


def reset_default_config() -> None:
    """Forget the process-wide engine config so the next call reloads it."""
    global _default_config
    _default_config = None
