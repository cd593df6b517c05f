"""
Smartcar Demo - Configuration Manager
=======================================
Builds the validated runtime configuration from three layers, each one
overriding the previous:

1. DEFAULTS     - Built-in values so the demo runs with only credentials set
2. config.yaml  - Non-sensitive settings (host, port, scopes, timeouts)
3. Environment  - Secrets and deployment overrides (SMARTCAR_*, PORT, ...)

The .env file is loaded into the environment by app.py before this module
reads it, so secrets can live there during development.

Usage:
    manager = ConfigManager(project_dir="/path/to/project")
    config = manager.load()            # Returns a validated DemoConfig
    config.test_mode                   # True when SMARTCAR_MODE=test

Invalid values raise ConfigError. The entry point treats that as fatal and
exits before the web server starts listening.
"""

import os
import uuid
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml


logger = logging.getLogger(__name__)


# Default configuration values used when config.yaml is missing or incomplete.
DEFAULTS = {
    "web": {
        "port": 8000,
        "host": "127.0.0.1",
        "open_browser": True,
    },
    "smartcar": {
        "mode": "test",
        "redirect_uri": None,
        "request_timeout": 30,
        "scope": [
            "read_vehicle_info",
            "read_location",
            "read_odometer",
            "control_security",
        ],
    },
    "session": {
        "cookie_name": "demo-session",
        "max_age": 14 * 24 * 3600,
    },
}

# Recognized operating modes. "test" serves Smartcar's simulated vehicles.
MODES = ("test", "live")

# Environment variable -> (section, key) overrides for config.yaml values.
ENV_OVERRIDES = {
    "HOST": ("web", "host"),
    "PORT": ("web", "port"),
    "SMARTCAR_MODE": ("smartcar", "mode"),
    "SMARTCAR_REDIRECT_URI": ("smartcar", "redirect_uri"),
    "SMARTCAR_REQUEST_TIMEOUT": ("smartcar", "request_timeout"),
}


class ConfigError(ValueError):
    """Raised when the configuration cannot be used to start the server."""


@dataclass(frozen=True)
class DemoConfig:
    """
    Validated configuration handed to every component at construction time.

    Attributes:
        client_id:       Smartcar application Client ID (UUID).
        client_secret:   Smartcar application Client Secret (UUID).
        redirect_uri:    OAuth callback registered in the Smartcar dashboard.
        mode:            "test" (simulated vehicles) or "live".
        scope:           Permissions requested on the authorization page.
        request_timeout: Seconds before a vehicle API call is abandoned (0 = never).
        host:            Interface the web server binds to.
        port:            Port the web server listens on.
        open_browser:    Open the home page in a browser on startup.
        session_secret:  Key used to sign the session cookie.
        cookie_name:     Name of the session cookie.
        session_max_age: Session cookie lifetime in seconds.
    """

    client_id: str
    client_secret: str
    redirect_uri: str
    mode: str = "test"
    scope: tuple[str, ...] = tuple(DEFAULTS["smartcar"]["scope"])
    request_timeout: float = 30.0
    host: str = "127.0.0.1"
    port: int = 8000
    open_browser: bool = True
    session_secret: str = field(default_factory=lambda: secrets.token_hex(32), repr=False)
    cookie_name: str = "demo-session"
    session_max_age: int = 14 * 24 * 3600

    @property
    def test_mode(self) -> bool:
        """True when the simulated-vehicle environment is active."""
        return self.mode == "test"


class ConfigManager:
    """
    Loads config.yaml, merges it over DEFAULTS, applies environment
    overrides and validates the result.

    Attributes:
        project_dir: Root directory of the project.
        config_path: Full path to config.yaml.
    """

    def __init__(self, project_dir: str, environ: Mapping[str, str] | None = None):
        """
        Initialize the config manager.

        Args:
            project_dir: Absolute path to the project root directory.
            environ:     Environment mapping to read (defaults to os.environ).
        """
        self.project_dir = project_dir
        self.config_path = os.path.join(project_dir, "config.yaml")
        self.environ = os.environ if environ is None else environ

    def load_raw(self) -> dict:
        """
        Merge DEFAULTS, config.yaml and environment overrides.

        Returns:
            The merged configuration as a nested dictionary (not validated).

        Raises:
            ConfigError: If config.yaml exists but cannot be parsed.
        """
        config = _deep_copy(DEFAULTS)

        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f) or {}
            except (yaml.YAMLError, OSError) as e:
                raise ConfigError(f"Could not read {self.config_path}: {e}") from e
            if not isinstance(user_config, dict):
                raise ConfigError(f"{self.config_path} must contain a mapping at the top level.")
            _deep_merge(config, user_config)

        for section in DEFAULTS:
            if not isinstance(config.get(section), dict):
                raise ConfigError(f"Section '{section}' in {self.config_path} must be a mapping.")

        for env_key, (section, key) in ENV_OVERRIDES.items():
            value = self.environ.get(env_key)
            if value:
                config[section][key] = value

        return config

    def load(self) -> DemoConfig:
        """
        Load and validate the full configuration.

        Returns:
            A DemoConfig ready to be passed to create_app().

        Raises:
            ConfigError: If any value is missing or invalid.
        """
        raw = self.load_raw()
        web, smartcar, session = raw["web"], raw["smartcar"], raw["session"]

        port = _parse_port(web.get("port"))
        client_id = _require_uuid(
            self.environ.get("SMARTCAR_CLIENT_ID"),
            "CLIENT_ID is invalid. Please check to make sure you have replaced "
            "CLIENT_ID with the Client ID obtained from the Smartcar developer dashboard.",
        )
        client_secret = _require_uuid(
            self.environ.get("SMARTCAR_SECRET"),
            "SMARTCAR_SECRET is invalid. Please check to make sure you have replaced "
            "SMARTCAR_SECRET with your Client Secret obtained from the Smartcar developer dashboard.",
        )

        mode = str(smartcar.get("mode") or "").strip()
        if mode not in MODES:
            raise ConfigError(
                f"SMARTCAR_MODE must be one of {', '.join(MODES)} (got {mode!r})."
            )

        # Must be added to the application's allowed redirect URIs
        # in the Smartcar developer dashboard.
        redirect_uri = smartcar.get("redirect_uri") or f"http://localhost:{port}/callback"

        scope = smartcar.get("scope")
        if isinstance(scope, str):
            scope = scope.split()
        if not scope or not all(isinstance(s, str) for s in scope):
            raise ConfigError("smartcar.scope must be a non-empty list of permission names.")

        session_secret = self.environ.get("SESSION_SECRET")
        if not session_secret:
            logger.warning(
                "SESSION_SECRET is not set; sessions will not survive a restart."
            )
            session_secret = secrets.token_hex(32)

        config = DemoConfig(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            mode=mode,
            scope=tuple(scope),
            request_timeout=_parse_timeout(smartcar.get("request_timeout")),
            host=str(web.get("host") or DEFAULTS["web"]["host"]),
            port=port,
            open_browser=bool(web.get("open_browser", True)),
            session_secret=session_secret,
            cookie_name=str(session.get("cookie_name") or DEFAULTS["session"]["cookie_name"]),
            session_max_age=_parse_int(session.get("max_age"), "session.max_age"),
        )
        logger.info(
            "Configuration loaded (mode=%s, redirect_uri=%s)", config.mode, config.redirect_uri
        )
        return config


# -- Helper Functions ---------------------------------------------------------

def is_uuid(value: Any) -> bool:
    """Check whether a value is a syntactically valid UUID string."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _require_uuid(value: str | None, message: str) -> str:
    if not is_uuid(value):
        raise ConfigError(message)
    return value


def _parse_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer (got {value!r}).") from None


def _parse_port(value: Any) -> int:
    port = _parse_int(value, "PORT")
    if not 0 < port < 65536:
        raise ConfigError(f"PORT must be between 1 and 65535 (got {port}).")
    return port


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"SMARTCAR_REQUEST_TIMEOUT must be a number of seconds (got {value!r})."
        ) from None
    if timeout < 0:
        raise ConfigError("SMARTCAR_REQUEST_TIMEOUT cannot be negative.")
    return timeout


def _deep_copy(d: dict) -> dict:
    """Create a deep copy of a nested dictionary."""
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            result[key] = _deep_copy(value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    return result


def _deep_merge(base: dict, override: dict) -> None:
    """
    Recursively merge 'override' into 'base' (in-place).

    For nested dicts, values are merged recursively.
    For all other types, override replaces base.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
