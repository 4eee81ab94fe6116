import json
import os

import pytest

from msgine_client import ClientConfig, RetryPolicy, load_config
from msgine_client.config import DEFAULT_BASE_URL, default_config_path


def write_config(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_retry_policy_defaults():
    policy = RetryPolicy()
    assert policy.max_retries == 3
    assert policy.initial_delay_ms == 1000
    assert policy.max_delay_ms == 10000
    assert policy.backoff_multiplier == 2
    assert policy.retryable_status_codes == frozenset({408, 429, 500, 502, 503, 504})


def test_retry_policy_normalizes_status_codes():
    assert RetryPolicy(retryable_status_codes=[503, 503, 429]).retryable_status_codes == frozenset({429, 503})


@pytest.mark.parametrize("options", [
    {"max_retries": -1},
    {"initial_delay_ms": 0},
    {"max_delay_ms": 0},
    {"backoff_multiplier": 1},
])
def test_retry_policy_rejects_invalid_values(options):
    with pytest.raises(ValueError):
        RetryPolicy(**options)


@pytest.mark.parametrize("options", [
    {"max_retries": "3"},
    {"max_retries": 1.5},
    {"initial_delay_ms": "1000"},
    {"backoff_multiplier": True},
    {"retryable_status_codes": "503"},
    {"retryable_status_codes": 503},
    {"retryable_status_codes": ["503"]},
])
def test_retry_policy_rejects_wrong_types(options):
    with pytest.raises(ValueError):
        RetryPolicy(**options)


def test_client_config_defaults():
    config = ClientConfig(api_token="token")
    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout_ms == 30000
    assert config.retry_policy == RetryPolicy()
    assert config.executor is None


def test_client_config_rejects_invalid_timeout():
    with pytest.raises(ValueError):
        ClientConfig(api_token="token", timeout_ms=0)


@pytest.mark.parametrize("options", [
    {"timeout_ms": "5000"},
    {"max_workers": 2.5},
    {"base_url": None},
])
def test_client_config_rejects_wrong_types(options):
    with pytest.raises(ValueError, match="must be"):
        ClientConfig(api_token="token", **options)


def test_default_config_path(clean_env, monkeypatch):
    assert default_config_path() == os.path.join(str(clean_env / "xdg"), "msgine", "config.json")

    monkeypatch.delenv("XDG_CONFIG_HOME")
    assert default_config_path() == os.path.join(str(clean_env / "home"), ".config", "msgine", "config.json")

    monkeypatch.setenv("MSGINE_CONFIG", "/etc/msgine.json")
    assert default_config_path() == "/etc/msgine.json"


def test_load_config_from_file(clean_env):
    path = write_config(clean_env / "config.json", {
        "api_token": "file-token",
        "base_url": "https://staging.msgine.net/api/v1",
        "timeout_ms": 5000,
        "retry": {"max_retries": 5, "initial_delay_ms": 2000, "retryable_status_codes": [503]},
    })

    config = load_config(path)

    assert config.api_token == "file-token"
    assert config.base_url == "https://staging.msgine.net/api/v1"
    assert config.timeout_ms == 5000
    assert config.retry_policy == RetryPolicy(max_retries=5, initial_delay_ms=2000,
                                              retryable_status_codes=frozenset({503}))


def test_environment_overrides_file(clean_env):
    path = write_config(clean_env / "config.json", {"api_token": "file-token", "timeout_ms": 5000})
    environ = {
        "MSGINE_API_TOKEN": "env-token",
        "MSGINE_BASE_URL": "http://localhost:8080/api/v1",
        "MSGINE_TIMEOUT_MS": "60000",
        "MSGINE_MAX_RETRIES": "0",
    }

    config = load_config(path, environ=environ)

    assert config.api_token == "env-token"
    assert config.base_url == "http://localhost:8080/api/v1"
    assert config.timeout_ms == 60000
    assert config.retry_policy.max_retries == 0


def test_default_path_is_optional(clean_env):
    config = load_config(environ={"MSGINE_API_TOKEN": "env-token"})
    assert config.api_token == "env-token"
    assert config.base_url == DEFAULT_BASE_URL


def test_default_path_is_read_when_present(clean_env):
    write_config(clean_env / "xdg" / "msgine" / "config.json", {"api_token": "xdg-token"})
    assert load_config(environ={}).api_token == "xdg-token"


def test_explicit_path_must_exist(clean_env):
    with pytest.raises(FileNotFoundError):
        load_config(str(clean_env / "missing.json"), environ={"MSGINE_API_TOKEN": "env-token"})


def test_missing_token(clean_env):
    with pytest.raises(ValueError, match="API token is required"):
        load_config(environ={})


def test_unknown_retry_field(clean_env):
    path = write_config(clean_env / "config.json", {"api_token": "t", "retry": {"jitter": True}})
    with pytest.raises(ValueError, match="jitter"):
        load_config(path, environ={})


def test_invalid_numeric_environment(clean_env):
    with pytest.raises(ValueError):
        load_config(environ={"MSGINE_API_TOKEN": "t", "MSGINE_TIMEOUT_MS": "soon"})


def test_config_file_must_be_object(clean_env):
    path = write_config(clean_env / "config.json", ["api_token"])
    with pytest.raises(ValueError):
        load_config(path, environ={})


@pytest.mark.parametrize("data", [
    {"api_token": "t", "timeout_ms": "5000"},
    {"api_token": "t", "retry": {"max_retries": "3"}},
    {"api_token": "t", "retry": [3]},
])
def test_mistyped_file_values(clean_env, data):
    path = write_config(clean_env / "config.json", data)
    with pytest.raises(ValueError):
        load_config(path, environ={})
