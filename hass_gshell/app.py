from __future__ import annotations
from typing import Optional
import logging, os

from flask import Flask, Response, jsonify

from .config import ENV_PREFIX, load_settings
from .ha_api import ErrorKind, HAClient, Result
from .poller import EntityPoller
from .secret import TokenStore

_LOGGER = logging.getLogger(__name__)

def _error(res: Result):
    code = 504 if res.error is ErrorKind.TIMEOUT else 502
    return jsonify(res.as_dict()), code

def create_app(client: HAClient, poller: Optional[EntityPoller] = None) -> Flask:
    app = Flask(__name__)

    @app.route("/api/switches")
    def api_switches():
        return jsonify([e.as_dict() for e in client.discover_toggleable()])

    @app.route("/api/sensors")
    def api_sensors():
        return jsonify([e.as_dict() for e in client.discover_sensors()])

    @app.route("/api/states/<entity_id>")
    def api_state(entity_id: str):
        res = client.get_state(entity_id)
        if not res.ok:
            return _error(res)
        return jsonify(res.data)

    @app.route("/api/toggle/<entity_id>", methods=["POST"])
    def api_toggle(entity_id: str):
        try:
            res = client.toggle(entity_id)
        except ValueError as e:
            return jsonify({"ok": False, "error": "invalid_entity", "detail": str(e)}), 400
        if not res.ok:
            return _error(res)
        if poller is not None:
            poller.refresh_now()
        return jsonify({"ok": True, "entity_id": entity_id})

    @app.route("/api/refresh", methods=["POST"])
    def api_refresh():
        if poller is None:
            return jsonify({"ok": False, "error": "poller_disabled"}), 409
        fresh = poller.refresh_now()
        return jsonify({"ok": poller.state.last_error is None, **{k: [e.as_dict() for e in v] for k, v in fresh.items()}})

    @app.route("/api/status")
    def api_status():
        out = {"base_url": client.settings.base_url, "running": False}
        if poller is not None:
            st = poller.state
            out.update({
                "running": st.running,
                "next_run": st.next_run,
                "last_run": st.last_run,
                "last_error": st.last_error,
                "lists": {k: [e.as_dict() for e in (v or [])] for k, v in poller.lists.items()},
            })
        return jsonify(out)

    @app.route("/health")
    def health():
        return Response("ok", mimetype="text/plain")

    return app

def main():
    logging.basicConfig(
        level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings()
    client = HAClient(settings=settings, token_store=TokenStore(settings.schema))
    probe = client.check_api()
    if not probe.ok:
        _LOGGER.warning("Home Assistant API not reachable at %s: %s", settings.base_url, probe.detail or probe.error.value)
    poller = EntityPoller(client)
    poller.start()
    app = create_app(client, poller)
    try:
        app.run(host="0.0.0.0", port=int(os.environ.get(ENV_PREFIX + "PORT", "8099")))
    finally:
        poller.stop()

if __name__ == "__main__":
    main()
