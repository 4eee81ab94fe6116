"""
Client configuration

Holds the immutable settings a client is built from (API token, base URL,
timeout, retry policy) and the loader that reads them from a JSON config file
and the MSGINE_* environment variables.
"""

import json
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Mapping, Optional

if TYPE_CHECKING:
    from .transport import HttpExecutor

DEFAULT_BASE_URL = "https://api.msgine.net/api/v1"
DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

RETRY_FIELDS = ('max_retries', 'initial_delay_ms', 'max_delay_ms', 'backoff_multiplier',
                'retryable_status_codes')


def _check_number(name: str, value: Any, integer: bool = True):
    """Reject values of the wrong type, such as strings read from a config file"""
    kinds = int if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, kinds):
        kind = "an integer" if integer else "a number"
        raise ValueError(f"{name} must be {kind}, got {value!r}")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings for failed requests"""

    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES

    def __post_init__(self):
        _check_number('max_retries', self.max_retries)
        for name in ('initial_delay_ms', 'max_delay_ms', 'backoff_multiplier'):
            _check_number(name, getattr(self, name), integer=False)
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms <= 0:
            raise ValueError("initial_delay_ms must be positive")
        if self.max_delay_ms <= 0:
            raise ValueError("max_delay_ms must be positive")
        if self.backoff_multiplier <= 1:
            raise ValueError("backoff_multiplier must be greater than 1")
        if isinstance(self.retryable_status_codes, (str, bytes)):
            raise ValueError("retryable_status_codes must be a collection of integers")
        try:
            codes = frozenset(self.retryable_status_codes)
        except TypeError:
            raise ValueError("retryable_status_codes must be a collection of integers") from None
        for code in codes:
            _check_number('retryable status code', code)
        # Accept any iterable of codes but store a frozenset
        object.__setattr__(self, 'retryable_status_codes', codes)


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for an SMSAPIClient.

    Args:
        api_token: MsGine API token, sent verbatim in the Authorization header
        base_url: API root, paths such as /messages/sms are appended to it
        timeout_ms: Hard deadline for each HTTP attempt
        retry_policy: Backoff settings
        executor: Optional replacement for the default requests based executor
        max_workers: Number of sends a batch runs at once
    """

    api_token: str
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = 30000
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    executor: Optional["HttpExecutor"] = None
    max_workers: int = 10

    def __post_init__(self):
        if not self.api_token:
            raise ValueError("API token is required")
        if not isinstance(self.api_token, str) or not isinstance(self.base_url, str):
            raise ValueError("api_token and base_url must be strings")
        _check_number('timeout_ms', self.timeout_ms, integer=False)
        _check_number('max_workers', self.max_workers)
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.max_workers <= 0:
            raise ValueError("max_workers must be positive")


def default_config_path() -> str:
    """Return the config file location following XDG conventions"""
    config_path = os.environ.get("MSGINE_CONFIG")
    if config_path:
        return config_path

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "msgine", "config.json")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "msgine", "config.json")

    return os.path.join(os.getcwd(), ".config", "msgine", "config.json")


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Read a JSON config file and return its top level object"""
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config_data = json.load(f)

    if not isinstance(config_data, dict):
        raise ValueError(f"Config file must contain a JSON object: {config_path}")
    return config_data


def _retry_policy_from(data: Mapping[str, Any]) -> RetryPolicy:
    unknown = set(data) - set(RETRY_FIELDS)
    if unknown:
        raise ValueError(f"Unknown retry config field(s): {', '.join(sorted(unknown))}")
    return RetryPolicy(**data)


def load_config(config_path: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None,
                executor: Optional["HttpExecutor"] = None) -> ClientConfig:
    """
    Build a ClientConfig from a config file and the environment.

    Environment variables take precedence over the file:
        MSGINE_API_TOKEN, MSGINE_BASE_URL, MSGINE_TIMEOUT_MS, MSGINE_MAX_RETRIES

    Args:
        config_path: Path to a JSON config file. When given the file must exist;
            when omitted the default location is read only if present.
        environ: Environment mapping (defaults to os.environ)
        executor: Optional HTTP executor passed through to the config

    Returns:
        ClientConfig: The merged configuration

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If a value is invalid or the API token is missing
    """
    if environ is None:
        environ = os.environ

    if config_path is not None:
        config_data = read_config_file(config_path)
    else:
        default_path = default_config_path()
        config_data = read_config_file(default_path) if os.path.exists(default_path) else {}

    retry_config = config_data.get('retry') or {}
    if not isinstance(retry_config, dict):
        raise ValueError("'retry' in the config file must be a JSON object")
    retry_data = dict(retry_config)
    options: Dict[str, Any] = {
        'api_token': config_data.get('api_token', ''),
    }
    for key in ('base_url', 'timeout_ms', 'max_workers'):
        if key in config_data:
            options[key] = config_data[key]

    # Environment overrides
    if environ.get("MSGINE_API_TOKEN"):
        options['api_token'] = environ["MSGINE_API_TOKEN"]
    if environ.get("MSGINE_BASE_URL"):
        options['base_url'] = environ["MSGINE_BASE_URL"]
    try:
        if environ.get("MSGINE_TIMEOUT_MS"):
            options['timeout_ms'] = int(environ["MSGINE_TIMEOUT_MS"])
        if environ.get("MSGINE_MAX_RETRIES"):
            retry_data['max_retries'] = int(environ["MSGINE_MAX_RETRIES"])
    except ValueError as e:
        raise ValueError(f"Invalid numeric environment setting: {e}") from e

    return ClientConfig(
        retry_policy=_retry_policy_from(retry_data),
        executor=executor,
        **options
    )
