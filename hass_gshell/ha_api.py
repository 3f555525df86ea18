from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import json, logging

import requests

from .config import Settings
from .entities import EntityRecord, TOGGLE_DOMAINS, filter_sensors, filter_toggleable
from .secret import TokenStore

_LOGGER = logging.getLogger(__name__)

METHODS = ("GET", "POST")

class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    STATUS = "status"
    PARSE = "parse"
    AUTH = "auth"

@dataclass(frozen=True)
class Result:
    data: Any = None
    error: Optional[ErrorKind] = None
    status: Optional[int] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(data: Any, status: int = 200) -> "Result":
        return Result(data=data, status=status)

    @staticmethod
    def failure(kind: ErrorKind, detail: str, status: Optional[int] = None) -> "Result":
        return Result(error=kind, status=status, detail=detail)

    def as_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error.value, "status": self.status, "detail": self.detail}

class HAClient:
    """Blocking Home Assistant REST client.

    Every call is a single attempt bounded by ``settings.timeout``. Failures
    come back as a :class:`Result` and are logged; nothing here raises for a
    network or server problem.
    """

    def __init__(self, settings: Settings, token_store: TokenStore, session: Optional[requests.Session] = None):
        self.settings = settings
        self.token_store = token_store
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = settings.user_agent

    def url(self, path: str, base_url: Optional[str] = None) -> str:
        base = base_url.rstrip("/") + "/" if base_url else self.settings.base_url
        return f"{base}{path.lstrip('/')}"

    def states_url(self, base_url: Optional[str] = None) -> str:
        return self.url("api/states", base_url)

    def build_request(self, method: str, url: str, body: Optional[Any] = None) -> requests.PreparedRequest:
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported method {method!r}")
        headers = {"Content-Type": "application/json"}
        token = self.token_store.lookup()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            _LOGGER.warning("No bearer token available, sending %s %s unauthenticated", method, url)
        data = json.dumps(body) if body is not None else None
        return self.session.prepare_request(requests.Request(method, url, headers=headers, data=data))

    def send(self, url: str, method: str = "GET", body: Optional[Any] = None) -> Result:
        try:
            req = self.build_request(method, url, body)
        except requests.RequestException as e:
            return self._fail(url, Result.failure(ErrorKind.TRANSPORT, str(e)))
        _LOGGER.debug("%s %s", req.method, url)
        try:
            r = self.session.send(req, timeout=self.settings.timeout)
        except requests.Timeout as e:
            return self._fail(url, Result.failure(ErrorKind.TIMEOUT, str(e)))
        except requests.RequestException as e:
            return self._fail(url, Result.failure(ErrorKind.TRANSPORT, str(e)))

        if r.status_code in (401, 403):
            return self._fail(url, Result.failure(ErrorKind.AUTH, r.reason or "unauthorized", r.status_code))
        if r.status_code != 200:
            return self._fail(url, Result.failure(ErrorKind.STATUS, r.reason or "", r.status_code))
        try:
            data = r.json()
        except ValueError as e:
            return self._fail(url, Result.failure(ErrorKind.PARSE, str(e), r.status_code))
        return Result.success(data, r.status_code)

    def _fail(self, url: str, res: Result) -> Result:
        _LOGGER.warning("Could not send request to %s (%s, status=%s): %s", url, res.error.value, res.status, res.detail)
        return res

    def check_api(self) -> Result:
        return self.send(self.url("api/"))

    def get_states(self, base_url: Optional[str] = None) -> Result:
        res = self.send(self.states_url(base_url))
        if res.ok and not isinstance(res.data, list):
            return self._fail(self.states_url(base_url), Result.failure(ErrorKind.PARSE, "expected a JSON array", res.status))
        return res

    def get_state(self, entity_id: str) -> Result:
        return self.send(self.url(f"api/states/{entity_id}"))

    def discover_toggleable(self, base_url: Optional[str] = None) -> List[EntityRecord]:
        res = self.get_states(base_url)
        if not res.ok:
            return []
        return filter_toggleable(res.data)

    def discover_sensors(self, base_url: Optional[str] = None) -> List[EntityRecord]:
        res = self.get_states(base_url)
        if not res.ok:
            return []
        return filter_sensors(res.data)

    def call_service(self, domain: str, service: str, data: Dict[str, Any]) -> Result:
        return self.send(self.url(f"api/services/{domain}/{service}"), "POST", data)

    def _toggle_domain(self, entity_id: str) -> str:
        if not entity_id.startswith(TOGGLE_DOMAINS):
            raise ValueError(f"{entity_id!r} is not a switch or light")
        return entity_id.split(".", 1)[0]

    def toggle(self, entity_id: str) -> Result:
        return self.call_service(self._toggle_domain(entity_id), "toggle", {"entity_id": entity_id})

    def turn_on(self, entity_id: str) -> Result:
        return self.call_service(self._toggle_domain(entity_id), "turn_on", {"entity_id": entity_id})

    def turn_off(self, entity_id: str) -> Result:
        return self.call_service(self._toggle_domain(entity_id), "turn_off", {"entity_id": entity_id})

def default_client(settings: Optional[Settings] = None, base_url: Optional[str] = None) -> HAClient:
    if settings is None:
        settings = Settings(base_url=base_url) if base_url else Settings()
    return HAClient(settings=settings, token_store=TokenStore(settings.schema))

def discover_toggleable(base_url: str, settings: Optional[Settings] = None) -> List[EntityRecord]:
    return default_client(settings).discover_toggleable(base_url)

def discover_sensors(base_url: str, settings: Optional[Settings] = None) -> List[EntityRecord]:
    return default_client(settings).discover_sensors(base_url)
