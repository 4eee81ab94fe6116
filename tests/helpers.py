import json
import threading

API_TOKEN = "test-token-123"


def delivery_body(**overrides):
    body = {
        "id": "08356d39-3b8d-4ace-afe3-bf497e716d3e",
        "sid": None,
        "channel": "sms",
        "to": ["+256701521269"],
        "from": "MsGine",
        "content": "Hello from MsGine!",
        "status": "pending",
        "cost": 30,
        "currency": "UGX",
        "createdAt": "2024-01-01T00:00:00Z",
    }
    body.update(overrides)
    return body


def error_body(code, message, request_id=None, details=None):
    body = {"error": {"code": code, "message": message}}
    if details is not None:
        body["error"]["details"] = details
    if request_id is not None:
        body["meta"] = {"requestId": request_id}
    return body


class FakeResponse:
    """Stands in for requests.Response"""

    def __init__(self, status_code=200, body=None, headers=None, reason="OK", text=None):
        self.status_code = status_code
        self.reason = reason
        if headers is None:
            content_type = "application/json" if text is None else "text/plain"
            headers = {"Content-Type": content_type}
        self.headers = headers
        self._body = body
        self._text = text

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._body


class ScriptedExecutor:
    """
    HTTP executor returning scripted steps in call order.

    A step is a response, an exception to raise, or a callable taking the
    recorded call and returning a response.
    """

    def __init__(self, *steps):
        self.steps = list(steps)
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, url, *, method, headers, data, timeout):
        call = {
            "url": url,
            "method": method,
            "headers": headers,
            "data": data,
            "json": json.loads(data) if data else None,
            "timeout": timeout,
        }
        with self._lock:
            self.calls.append(call)
            step = self.steps.pop(0)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if isinstance(step, BaseException):
                raise step
            if callable(step):
                return step(call)
            return step
        finally:
            with self._lock:
                self.in_flight -= 1


class EchoExecutor:
    """HTTP executor answering every send with a delivery record for its body"""

    def __init__(self, delay=None):
        self.calls = []
        self._delay = delay
        self._lock = threading.Lock()

    def __call__(self, url, *, method, headers, data, timeout):
        payload = json.loads(data)
        with self._lock:
            self.calls.append(payload)
            index = len(self.calls)
        if self._delay is not None:
            self._delay(payload)
        return FakeResponse(200, delivery_body(
            id=f"msg_{index}", to=[payload["to"]], content=payload["message"]
        ))
