"""
HTTP transport for the MsGine API

Executes requests through a pluggable executor (requests by default), enforces
a hard deadline on every attempt, retries retryable failures with exponential
backoff and normalizes every outcome into either parsed JSON or an ApiError.
"""

import concurrent.futures
import json
import logging
import threading
import time
import urllib.parse
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Type, Union

import pydantic
import requests
from requests.structures import CaseInsensitiveDict

from . import __version__
from .config import ClientConfig, RetryPolicy
from .errors import ApiError

logger = logging.getLogger(__name__)

USER_AGENT = f"msgine-python/{__version__}"

QueryValue = Union[str, int, float, bool]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True)
class RequestOptions:
    """A single logical API request"""

    method: HttpMethod
    path: str
    body: Optional[Any] = None
    query_params: Optional[Mapping[str, QueryValue]] = None
    headers: Optional[Mapping[str, str]] = None


class HttpResponse(Protocol):
    """The parts of a response the transport reads. requests.Response satisfies it."""

    status_code: int
    reason: str
    headers: Mapping[str, str]

    def json(self) -> Any: ...


class HttpExecutor(Protocol):
    def __call__(self, url: str, *, method: str, headers: Dict[str, str],
                 data: Optional[str], timeout: float) -> HttpResponse: ...


class RequestsExecutor:
    """Default executor backed by a requests.Session"""

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()

    def __call__(self, url, *, method, headers, data, timeout):
        return self._session.request(method, url, headers=headers, data=data, timeout=timeout)

    def close(self):
        self._session.close()


def compute_backoff_delay(policy: RetryPolicy, attempt: int) -> float:
    """Delay in milliseconds before retrying after the given 0-indexed attempt"""
    delay = policy.initial_delay_ms * (policy.backoff_multiplier ** attempt)
    return min(delay, policy.max_delay_ms)


class HttpTransport:
    """
    Runs API requests with timeout and retry handling.

    Args:
        config: Client configuration (token, base URL, timeout, retry policy)
        sleep: Function used to wait between retries, takes seconds
    """

    def __init__(self, config: ClientConfig, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self._sleep = sleep
        self._owns_executor = config.executor is None
        self._executor = config.executor or RequestsExecutor()

    def close(self):
        if self._owns_executor:
            self._executor.close()

    def request(self, options: RequestOptions,
                response_model: Optional[Type[pydantic.BaseModel]] = None) -> Any:
        """
        Execute a request, retrying retryable API errors per the retry policy.

        Returns:
            The decoded JSON body, or an instance of response_model when given

        Raises:
            ApiError: When the request fails and is not (or no longer) retryable
        """
        policy = self.config.retry_policy
        attempt = 0
        while True:
            try:
                return self._execute(options, response_model)
            except ApiError as e:
                if e.status_code not in policy.retryable_status_codes:
                    raise
                if attempt >= policy.max_retries:
                    raise
                delay_ms = compute_backoff_delay(policy, attempt)
                logger.debug(f"Scheduling retry {attempt + 1}/{policy.max_retries} of "
                             f"{options.method.value} {options.path} in {delay_ms:.0f}ms "
                             f"(status {e.status_code})")
                self._sleep(delay_ms / 1000.0)
                attempt += 1

    def build_url(self, path: str, query_params: Optional[Mapping[str, QueryValue]] = None) -> str:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        if query_params:
            encoded = urllib.parse.urlencode(
                [(key, _query_value(value)) for key, value in query_params.items()]
            )
            url = f"{url}?{encoded}"
        return url

    def build_headers(self, custom_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        headers = {
            'Authorization': self.config.api_token,
            'Content-Type': 'application/json',
            'User-Agent': USER_AGENT,
        }
        if custom_headers:
            headers.update(custom_headers)
        return headers

    def _execute(self, options: RequestOptions,
                 response_model: Optional[Type[pydantic.BaseModel]]) -> Any:
        """Run a single attempt"""
        url = self.build_url(options.path, options.query_params)
        headers = self.build_headers(options.headers)
        data = json.dumps(options.body) if options.body is not None else None

        logger.debug(f"{options.method.value} {url}")
        try:
            response = self._call_with_deadline(url, options.method.value, headers, data)
        except requests.exceptions.Timeout:
            raise ApiError("Request timeout", 408, code="REQUEST_TIMEOUT") from None
        except (requests.exceptions.RequestException, OSError) as e:
            raise ApiError(f"Network error: {e}", 0, code="NETWORK_ERROR") from e

        return self._handle_response(response, response_model)

    def _call_with_deadline(self, url: str, method: str, headers: Dict[str, str],
                            data: Optional[str]) -> HttpResponse:
        timeout = self.config.timeout_ms / 1000.0
        future: concurrent.futures.Future = concurrent.futures.Future()

        def run():
            future.set_running_or_notify_cancel()
            try:
                future.set_result(self._executor(url, method=method, headers=headers,
                                                 data=data, timeout=timeout))
            except Exception as e:
                future.set_exception(e)

        # One thread per attempt: an abandoned call never delays the next one
        threading.Thread(target=run, name="msgine-http", daemon=True).start()
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            raise ApiError("Request timeout", 408, code="REQUEST_TIMEOUT") from None

    def _handle_response(self, response: HttpResponse,
                         response_model: Optional[Type[pydantic.BaseModel]]) -> Any:
        status = response.status_code
        headers = CaseInsensitiveDict(response.headers or {})
        is_json = 'application/json' in (headers.get('content-type') or '')

        if 200 <= status < 300:
            if not is_json:
                raise ApiError("Unexpected response format", status, code="INVALID_RESPONSE_FORMAT")
            try:
                data = response.json()
            except ValueError:
                raise ApiError("Unexpected response format", status,
                               code="INVALID_RESPONSE_FORMAT") from None
            if response_model is None:
                return data
            try:
                return response_model.model_validate(data)
            except pydantic.ValidationError as e:
                raise ApiError("Unexpected response format", status, code="INVALID_RESPONSE_FORMAT",
                               details={'errors': e.errors(include_url=False)}) from None

        message = f"HTTP {status}: {getattr(response, 'reason', '') or ''}"
        code = details = request_id = None
        if is_json:
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            if isinstance(error_data, dict):
                error = error_data.get('error')
                if isinstance(error, dict):
                    message = error.get('message') or message
                    code = error.get('code')
                    details = error.get('details')
                meta = error_data.get('meta')
                if isinstance(meta, dict):
                    request_id = meta.get('requestId')

        raise ApiError(message, status, code=code, details=details, request_id=request_id)


def _query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)
