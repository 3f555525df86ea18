from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import json, logging, os

_LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://homeassistant.local:8123/"
DEFAULT_TIMEOUT = 3
DEFAULT_USER_AGENT = "hass-gshell"
DEFAULT_POLL_INTERVAL = 60

ENV_PREFIX = "HASS_GSHELL_"

@dataclass(frozen=True)
class TokenSchema:
    name: str = "org.gnome.hass-data.Password"
    attribute: str = "token_string"
    key: str = "user_token"

    @property
    def attributes(self) -> Dict[str, str]:
        return {"xdg:schema": self.name, self.attribute: self.key}

def normalize_base_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ValueError("base_url must not be empty")
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"base_url must start with http:// or https://: {url!r}")
    return url.rstrip("/") + "/"

@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    timeout: int = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    poll_interval_sec: int = DEFAULT_POLL_INTERVAL
    schema: TokenSchema = field(default_factory=TokenSchema)

    def __post_init__(self):
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.poll_interval_sec <= 0:
            raise ValueError("poll_interval_sec must be positive")

    @staticmethod
    def from_mapping(d: Mapping[str, Any]) -> "Settings":
        return Settings(
            base_url=str(d.get("base_url") or DEFAULT_BASE_URL),
            timeout=int(d.get("timeout", DEFAULT_TIMEOUT)),
            user_agent=str(d.get("user_agent") or DEFAULT_USER_AGENT),
            poll_interval_sec=int(d.get("poll_interval_sec", DEFAULT_POLL_INTERVAL)),
        )

def load_options(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        _LOGGER.warning("Ignoring unreadable options file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        _LOGGER.warning("Ignoring options file %s: expected a JSON object", path)
        return {}
    return data

def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    keys = {
        "URL": "base_url",
        "TIMEOUT": "timeout",
        "USER_AGENT": "user_agent",
        "POLL_INTERVAL": "poll_interval_sec",
    }
    out: Dict[str, Any] = {}
    for suffix, name in keys.items():
        val = environ.get(ENV_PREFIX + suffix)
        if val:
            out[name] = val
    return out

def load_settings(options_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    environ = os.environ if environ is None else environ
    d: Dict[str, Any] = {}
    d.update(load_options(options_path or environ.get(ENV_PREFIX + "OPTIONS")))
    d.update(env_overrides(environ))
    return Settings.from_mapping(d)
