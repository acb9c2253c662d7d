"""PagerDuty client configuration: defaults, YAML file, environment overrides."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pagerduty_common.errors import ConfigError

DEFAULT_BASE_URL = "https://api.pagerduty.com"

# env var -> (field, type)
_ENV_OVERRIDES = {
    "PAGERDUTY_API_URL": ("base_url", str),
    "PAGERDUTY_TIMEOUT": ("timeout", float),
    "PAGERDUTY_RETRIES": ("retries", int),
    "PAGERDUTY_AUTH_SCHEME": ("auth_scheme", str),
}


@dataclass
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    retries: int = 3
    retry_delay: float = 1.0
    retry_backoff: float = 2.0
    max_retry_delay: float = 30.0
    page_limit: int = 100
    max_pages: int = 1000
    auth_scheme: str = "token"  # "token" | "bearer"

    # ----- class methods -------------------------------------------------

    @classmethod
    def from_yaml(cls, path: str) -> "ClientSettings":
        """Load from a YAML file and validate."""
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Config file not found: {path}")
        with open(p) as f:
            raw = yaml.safe_load(f)
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file must be a YAML mapping: {path}")
        # Allow the settings to live under a top-level "pagerduty" key.
        if isinstance(raw.get("pagerduty"), dict):
            raw = raw["pagerduty"]
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClientSettings":
        """Build settings from a plain dict, applying defaults."""
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(d) - set(known))
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        cfg = cls()
        for k, v in d.items():
            default = getattr(cfg, k)
            setattr(cfg, k, _coerce(k, v, type(default)))
        cfg.validate()
        return cfg

    # ----- mutation -------------------------------------------------------

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "ClientSettings":
        """Return new settings with PAGERDUTY_* environment overrides applied."""
        env = os.environ if environ is None else environ
        values = self.to_dict()
        for var, (name, typ) in _ENV_OVERRIDES.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            values[name] = _coerce(name, raw, typ)
        cfg = ClientSettings(**values)
        cfg.validate()
        return cfg

    # ----- validation ----------------------------------------------------

    def validate(self) -> None:
        """Raise ConfigError if the configuration is invalid."""
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError(f"base_url must be an http(s) URL, got '{self.base_url}'")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.retries < 0:
            raise ConfigError(f"retries must be >= 0, got {self.retries}")
        if self.retry_delay < 0 or self.max_retry_delay < 0:
            raise ConfigError("retry delays must be >= 0")
        if self.retry_backoff < 1:
            raise ConfigError(f"retry_backoff must be >= 1, got {self.retry_backoff}")
        if not 1 <= self.page_limit <= 100:
            raise ConfigError(f"page_limit must be between 1 and 100, got {self.page_limit}")
        if self.max_pages < 1:
            raise ConfigError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.auth_scheme not in ("token", "bearer"):
            raise ConfigError(
                f"auth_scheme must be 'token' or 'bearer', got '{self.auth_scheme}'"
            )

    # ----- serialisation --------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(name: str, value: Any, typ: type) -> Any:
    if isinstance(value, bool) or value is None:
        raise ConfigError(f"{name} must be a {typ.__name__}, got {value!r}")
    try:
        return typ(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a {typ.__name__}, got {value!r}") from None


def load_settings(path: Optional[str] = None) -> ClientSettings:
    """Defaults, then the YAML file (if any), then PAGERDUTY_* env vars."""
    cfg = ClientSettings.from_yaml(path) if path else ClientSettings()
    return cfg.apply_env()
