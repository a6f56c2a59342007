"""Shared fixtures for the execution service tests."""

from __future__ import annotations

import base64

import pytest
from wasmtime import wat2wasm


@pytest.fixture
def compile_wat():
    """Return a helper compiling WAT source to base64 module bytes."""

    def _compile(wat: str) -> str:
        return base64.b64encode(bytes(wat2wasm(wat))).decode("ascii")

    return _compile


@pytest.fixture
def no_remote_credential(monkeypatch):
    """Make sure the E2B credential is absent."""
    monkeypatch.delenv("E2B_API_KEY", raising=False)
    yield
