from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from hass_gshell.config import Settings
from hass_gshell.ha_api import HAClient
from hass_gshell.secret import TokenStore

BASE_URL = "http://ha.local:8123/"


def make_response(status: int = 200, body=None, raw: bytes | None = None, reason: str = "OK") -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.reason = reason
    r.encoding = "utf-8"
    if raw is not None:
        r._content = raw
    else:
        r._content = json.dumps(body).encode("utf-8")
    return r


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL)


@pytest.fixture
def token_store() -> MagicMock:
    store = MagicMock(spec=TokenStore)
    store.lookup.return_value = "secret-token"
    return store


@pytest.fixture
def session() -> requests.Session:
    s = requests.Session()
    s.send = MagicMock(return_value=make_response(body=[]))
    return s


@pytest.fixture
def client(settings, token_store, session) -> HAClient:
    return HAClient(settings=settings, token_store=token_store, session=session)


@pytest.fixture
def states() -> list:
    return [
        {"entity_id": "switch.a", "state": "on", "attributes": {"friendly_name": "Relay A"}},
        {"entity_id": "light.b", "state": "off", "attributes": {"friendly_name": "Lamp B"}},
        {"entity_id": "sensor.c", "state": "12", "attributes": {"friendly_name": "C", "unit_of_measurement": "W"}},
    ]
