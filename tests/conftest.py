import socket
import threading
import time

import pytest
from flask import Blueprint, Flask, jsonify, request
from werkzeug.serving import make_server

from helpers import API_TOKEN, delivery_body, error_body


class FakeMsGineAPI:
    """
    In-process MsGine API.

    Each request to POST /api/v1/messages/sms consumes the next scripted action:
    an int status code answered with an error envelope, 'slow' (sleep, then
    succeed), 'text' (plain text 200), or nothing for a normal success.
    """

    def __init__(self):
        self.script = []
        self.requests = []
        self.base_url = None
        self._lock = threading.Lock()

    def next_action(self):
        with self._lock:
            return self.script.pop(0) if self.script else None


def create_app(api):
    app = Flask(__name__)
    sms_bp = Blueprint('sms', __name__, url_prefix='/api/v1')

    @sms_bp.route("/messages/sms", methods=["POST"])
    def send_sms():
        data = request.get_json(silent=True)
        api.requests.append({"headers": dict(request.headers), "json": data})

        if request.headers.get("Authorization") != API_TOKEN:
            return jsonify(error_body("UNAUTHORIZED", "Invalid API token", request_id="req_401")), 401

        action = api.next_action()
        if action == "slow":
            time.sleep(1.0)
        elif action == "text":
            return "queued", 200
        elif isinstance(action, int):
            return jsonify(error_body("SERVICE_UNAVAILABLE", "Service temporarily unavailable")), action

        return jsonify(delivery_body(
            id=f"msg_{len(api.requests)}", to=[data["to"]], content=data["message"]
        ))

    app.register_blueprint(sms_bp)
    return app


@pytest.fixture
def fake_api():
    api = FakeMsGineAPI()
    server = make_server("127.0.0.1", 0, create_app(api), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    api.base_url = f"http://127.0.0.1:{server.server_port}/api/v1"
    try:
        yield api
    finally:
        server.shutdown()
        thread.join(timeout=5)


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Keep the user's real config and MSGINE_* variables out of tests"""
    for name in ("MSGINE_CONFIG", "MSGINE_API_TOKEN", "MSGINE_BASE_URL",
                 "MSGINE_TIMEOUT_MS", "MSGINE_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path
