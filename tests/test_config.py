"""Tests for environment-driven configuration."""

from __future__ import annotations

import logging

import pytest

from polyexec.config import Config, remote_api_key

_VARS = (
    "POLYEXEC_API_KEY",
    "POLYEXEC_ALLOWED_LANGS",
    "POLYEXEC_MAX_MEMORY_MB",
    "POLYEXEC_JS_TIME_LIMIT",
    "POLYEXEC_WASM_TIME_LIMIT",
    "POLYEXEC_REMOTE_TIMEOUT",
    "POLYEXEC_LOG_LEVEL",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    yield


def test_defaults():
    config = Config.from_env()
    assert config.api_key == ""
    assert config.allowed_langs == ["python", "javascript", "wasm"]
    assert config.max_memory_mb == 128
    assert config.js_time_limit == 30
    assert config.wasm_time_limit == 30
    assert config.remote_timeout == 60
    assert config.log_level == logging.INFO
    assert config.port == 8080


def test_overrides(monkeypatch):
    monkeypatch.setenv("POLYEXEC_ALLOWED_LANGS", " JavaScript , wasm ")
    monkeypatch.setenv("POLYEXEC_JS_TIME_LIMIT", "5")
    monkeypatch.setenv("POLYEXEC_LOG_LEVEL", "debug")
    config = Config.load()
    assert config.allowed_langs == ["javascript", "wasm"]
    assert config.js_time_limit == 5
    assert config.log_level == logging.DEBUG


@pytest.mark.parametrize(
    "name, value, message",
    [
        ("POLYEXEC_MAX_MEMORY_MB", "lots", "Invalid integer"),
        ("POLYEXEC_REMOTE_TIMEOUT", "0", "must be positive"),
        ("POLYEXEC_ALLOWED_LANGS", "python,ruby", "ruby"),
        ("POLYEXEC_LOG_LEVEL", "chatty", "POLYEXEC_LOG_LEVEL"),
    ],
)
def test_invalid_values(monkeypatch, name, value, message):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        Config.load()


def test_remote_api_key(monkeypatch):
    monkeypatch.delenv("E2B_API_KEY", raising=False)
    assert remote_api_key() is None
    monkeypatch.setenv("E2B_API_KEY", "")
    assert remote_api_key() is None
    monkeypatch.setenv("E2B_API_KEY", "e2b_abc")
    assert remote_api_key() == "e2b_abc"
