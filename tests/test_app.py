"""Tests for the Flask HTTP surface."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from flask import Flask

from hass_gshell import app as app_module
from hass_gshell.app import create_app
from hass_gshell.config import Settings
from hass_gshell.ha_api import ErrorKind, HAClient, Result
from hass_gshell.poller import EntityPoller

from .conftest import make_response


@pytest.fixture
def web(client: HAClient):
    return create_app(client).test_client()


class TestDiscoveryRoutes:
    def test_switches(self, web, session, states) -> None:
        session.send.return_value = make_response(body=states)
        r = web.get("/api/switches")
        assert r.status_code == 200
        assert r.get_json() == [
            {"entity_id": "switch.a", "name": "Relay A"},
            {"entity_id": "light.b", "name": "Lamp B"},
        ]

    def test_sensors(self, web, session, states) -> None:
        session.send.return_value = make_response(body=states)
        assert web.get("/api/sensors").get_json() == [{"entity_id": "sensor.c", "name": "C", "unit": "W"}]

    def test_upstream_failure_returns_empty_list(self, web, session) -> None:
        session.send.return_value = make_response(status=502, body={})
        r = web.get("/api/switches")
        assert r.status_code == 200
        assert r.get_json() == []


class TestStateRoute:
    def test_state(self, web, session) -> None:
        session.send.return_value = make_response(body={"entity_id": "sensor.t", "state": "4"})
        assert web.get("/api/states/sensor.t").get_json()["state"] == "4"

    def test_not_found_is_bad_gateway(self, web, session) -> None:
        session.send.return_value = make_response(status=404, body={"message": "Entity not found."}, reason="Not Found")
        r = web.get("/api/states/sensor.none")
        assert r.status_code == 502
        assert r.get_json() == {"ok": False, "error": "status", "status": 404, "detail": "Not Found"}


class TestToggleRoute:
    def test_toggle(self, web, session) -> None:
        r = web.post("/api/toggle/switch.lamp")
        assert r.status_code == 200
        assert r.get_json() == {"ok": True, "entity_id": "switch.lamp"}

    def test_toggle_non_switch(self, web, session) -> None:
        r = web.post("/api/toggle/sensor.temp")
        assert r.status_code == 400
        session.send.assert_not_called()

    def test_toggle_auth_failure(self, web, session) -> None:
        session.send.return_value = make_response(status=401, raw=b"401: Unauthorized", reason="Unauthorized")
        r = web.post("/api/toggle/light.desk")
        assert r.status_code == 502
        assert r.get_json()["error"] == "auth"

    def test_toggle_refreshes_poller(self, client, session) -> None:
        poller = MagicMock(spec=EntityPoller)
        web = create_app(client, poller).test_client()
        web.post("/api/toggle/switch.lamp")
        poller.refresh_now.assert_called_once()


class TestStatusRoutes:
    def test_health(self, web) -> None:
        r = web.get("/health")
        assert r.data == b"ok"

    def test_status_without_poller(self, web) -> None:
        assert web.get("/api/status").get_json() == {"base_url": "http://ha.local:8123/", "running": False}

    def test_refresh_without_poller(self, web) -> None:
        assert web.post("/api/refresh").status_code == 409

    def test_refresh_and_status(self, client, session, states) -> None:
        session.send.return_value = make_response(body=states)
        web = create_app(client, EntityPoller(client)).test_client()
        r = web.post("/api/refresh")
        assert r.get_json()["ok"] is True
        assert r.get_json()["sensors"] == [{"entity_id": "sensor.c", "name": "C", "unit": "W"}]
        status = web.get("/api/status").get_json()
        assert status["running"] is False
        assert status["last_error"] is None
        assert status["lists"]["switches"][0] == {"entity_id": "switch.a", "name": "Relay A"}


class TestMain:
    def test_starts_poller_and_stops_it_after_run(self, monkeypatch) -> None:
        monkeypatch.setenv("HASS_GSHELL_PORT", "9001")
        with patch.object(app_module, "load_settings", return_value=Settings(base_url="http://ha.local:8123")), \
                patch.object(app_module, "TokenStore") as store_cls, \
                patch.object(app_module, "EntityPoller") as poller_cls, \
                patch.object(HAClient, "check_api", return_value=Result.failure(ErrorKind.TRANSPORT, "refused")), \
                patch.object(Flask, "run") as run:
            app_module.main()
        store_cls.assert_called_once_with(Settings().schema)
        poller = poller_cls.return_value
        poller.start.assert_called_once()
        run.assert_called_once_with(host="0.0.0.0", port=9001)
        poller.stop.assert_called_once()

    def test_stops_poller_when_run_fails(self) -> None:
        with patch.object(app_module, "load_settings", return_value=Settings()), \
                patch.object(app_module, "TokenStore"), \
                patch.object(app_module, "EntityPoller") as poller_cls, \
                patch.object(HAClient, "check_api", return_value=Result.success({"message": "API running."})), \
                patch.object(Flask, "run", side_effect=OSError("address in use")):
            with pytest.raises(OSError):
                app_module.main()
        poller_cls.return_value.stop.assert_called_once()
