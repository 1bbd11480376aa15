"""Configuration management."""

import json
import os
from pathlib import Path
from typing import Optional


def get_notifsync_dir() -> Path:
    """Get the notifsync data directory (XDG-compliant)."""
    if env_dir := os.environ.get("NOTIFSYNC_DIR"):
        return Path(env_dir)
    return Path.home() / ".config" / "notifsync"


class Config:
    """Application configuration."""

    # Keys accepted by `notifsync config set`
    SETTABLE: dict[str, str] = {
        "api_base_url": "Base URL of the notification service",
        "api_token": "Bearer token sent with every request",
        "username": "User whose notifications are synced",
        "poll_interval_ms": "Wait between poll cycles",
        "http_timeout": "HTTP request timeout in seconds",
        "max_retries": "Attempts per request on transient errors",
        "log_stderr": "Echo log lines to stderr",
    }

    def __init__(self, notifsync_dir: Optional[Path] = None):
        """Load config from directory."""
        self.notifsync_dir = notifsync_dir or get_notifsync_dir()
        self._config_file = self.notifsync_dir / "config.json"
        self._load()

    def _load(self):
        """Load config from file."""
        from notifsync.utils.constants import (
            DEFAULT_MAX_RETRIES,
            HTTP_CLIENT_TIMEOUT,
            POLL_WAIT_MS,
        )

        # Set defaults
        self.api_base_url = None
        self.api_token = None
        self.username = None
        self.poll_interval_ms = POLL_WAIT_MS
        self.http_timeout = HTTP_CLIENT_TIMEOUT
        self.max_retries = DEFAULT_MAX_RETRIES
        self.debug = False
        self.log_stderr = True
        self.env: dict[str, str] = {}

        if self._config_file.exists():
            try:
                data = json.loads(self._config_file.read_text())
                self.api_base_url = data.get("api_base_url")
                self.api_token = data.get("api_token")
                self.username = data.get("username")
                self.poll_interval_ms = data.get("poll_interval_ms", POLL_WAIT_MS)
                self.http_timeout = data.get("http_timeout", HTTP_CLIENT_TIMEOUT)
                self.max_retries = data.get("max_retries", DEFAULT_MAX_RETRIES)
                self.debug = data.get("debug", False)
                self.log_stderr = data.get("log_stderr", True)
                self.env = data.get("env", {})
            except (json.JSONDecodeError, IOError):
                pass

        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply env overrides: first from config.env, then from shell NOTIFSYNC_* vars."""
        prefix = "NOTIFSYNC_"

        def apply_env_dict(env_dict: dict[str, str]):
            for key, value in env_dict.items():
                if key.startswith(prefix):
                    attr_name = key[len(prefix) :].lower()
                else:
                    attr_name = key.lower()
                # NOTIFSYNC_DIR selects the directory, it is not a setting
                if attr_name in ("dir", "env") or not hasattr(self, attr_name):
                    continue
                current = getattr(self, attr_name)
                if isinstance(current, bool):
                    setattr(self, attr_name, value.lower() in ("true", "1", "yes"))
                elif isinstance(current, int):
                    try:
                        setattr(self, attr_name, int(value))
                    except ValueError:
                        pass
                else:
                    setattr(self, attr_name, value)

        apply_env_dict(self.env)

        # Shell env vars have the highest priority
        shell_env = {k: v for k, v in os.environ.items() if k.startswith(prefix)}
        apply_env_dict(shell_env)

    def save(self):
        """Save config to file."""
        self.notifsync_dir.mkdir(parents=True, exist_ok=True)
        data = {
            "api_base_url": self.api_base_url,
            "api_token": self.api_token,
            "username": self.username,
            "poll_interval_ms": self.poll_interval_ms,
            "http_timeout": self.http_timeout,
            "max_retries": self.max_retries,
            "debug": self.debug,
            "log_stderr": self.log_stderr,
            "env": self.env,
        }
        self._config_file.write_text(json.dumps(data, indent=2))

    def set_value(self, key: str, value: str) -> bool:
        """Set a settable key from its string form and persist it.

        Returns False if the key is unknown or the value does not parse.
        """
        if key not in self.SETTABLE:
            return False
        current = getattr(self, key)
        if isinstance(current, bool):
            if value.lower() not in ("true", "1", "yes", "on", "false", "0", "no", "off"):
                return False
            value = value.lower() in ("true", "1", "yes", "on")
        elif isinstance(current, int):
            try:
                value = int(value)
            except ValueError:
                return False
        setattr(self, key, value)
        self.save()
        return True

    def set_env(self, key: str, value: str):
        """Set an env var override in config."""
        self.env[key] = value
        self.save()
        self._apply_env_overrides()

    def unset_env(self, key: str) -> bool:
        """Remove an env var override. Returns True if key existed."""
        if key in self.env:
            del self.env[key]
            self.save()
            return True
        return False

    def set_debug(self, enabled: bool):
        """Enable or disable debug mode."""
        self.debug = enabled
        self.save()

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.notifsync_dir / "notifsync.db"

    @property
    def is_configured(self) -> bool:
        """Whether enough is configured to talk to the service."""
        return bool(self.api_base_url and self.username)
