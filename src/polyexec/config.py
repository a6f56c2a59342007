"""Configuration loader.

The execution service reads its configuration from environment variables so
that the same container image can run locally, under docker‑compose or on a
serverless platform.  Reasonable defaults are provided so that local
development works out of the box.

Environment variables:

``POLYEXEC_API_KEY``
    The shared secret used to authenticate incoming requests.  Each client
    must include this value in the ``x‑api‑key`` header.  When empty,
    authentication is disabled.

``E2B_API_KEY``
    Credential for the E2B cloud sandbox.  When it is absent the Python
    executor runs in demo mode.  This variable is read on every request (see
    :func:`remote_api_key`) rather than cached here.

``POLYEXEC_ALLOWED_LANGS``
    Comma‑separated list of language families exposed by the API.  Supported
    values are ``python``, ``javascript`` and ``wasm``; all three by default.

``POLYEXEC_MAX_MEMORY_MB``
    Memory ceiling (in megabytes) for the QuickJS context and for WebAssembly
    linear memory.  Default is 128.

``POLYEXEC_JS_TIME_LIMIT``
    CPU time limit (in seconds) for a single JavaScript evaluation.  Default
    is 30.

``POLYEXEC_WASM_TIME_LIMIT``
    Wall‑clock deadline (in seconds) after which a running WebAssembly module
    is interrupted.  Default is 30.

``POLYEXEC_REMOTE_TIMEOUT``
    Lifetime (in seconds) requested for each E2B sandbox.  Default is 60.

``POLYEXEC_LOG_LEVEL``
    Log level for the ``polyexec`` logger.  Defaults to ``INFO``.

``PORT``
    The port on which the API server listens.  Defaults to 8080.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List

SUPPORTED_LANGS = ("python", "javascript", "wasm")

REMOTE_API_KEY_ENV = "E2B_API_KEY"


def remote_api_key() -> str | None:
    """Return the E2B credential, or ``None`` when it is unset or blank."""
    value = os.getenv(REMOTE_API_KEY_ENV)
    if value is None or not value.strip():
        return None
    return value


@dataclass
class Config:
    """Centralised configuration object."""

    api_key: str
    allowed_langs: List[str]
    max_memory_mb: int
    js_time_limit: int
    wasm_time_limit: int
    remote_timeout: int
    log_level: int
    port: int

    @classmethod
    def load(cls) -> "Config":
        # API key may be empty in local development but should be set in production.
        api_key = os.getenv("POLYEXEC_API_KEY", "")

        allowed_langs_env = os.getenv("POLYEXEC_ALLOWED_LANGS", ",".join(SUPPORTED_LANGS))
        allowed_langs = [lang.strip().lower() for lang in allowed_langs_env.split(",") if lang.strip()]
        for lang in allowed_langs:
            if lang not in SUPPORTED_LANGS:
                raise ValueError(
                    f"Invalid POLYEXEC_ALLOWED_LANGS entry: {lang}. "
                    f"Use any of {', '.join(SUPPORTED_LANGS)}."
                )

        def _int_var(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None:
                return default
            try:
                parsed = int(val)
            except ValueError:
                raise ValueError(f"Invalid integer for {name}: {val}")
            if parsed <= 0:
                raise ValueError(f"{name} must be positive, got {parsed}")
            return parsed

        log_level_name = os.getenv("POLYEXEC_LOG_LEVEL", "INFO").upper()
        log_level = logging.getLevelName(log_level_name)
        if not isinstance(log_level, int):
            raise ValueError(f"Invalid POLYEXEC_LOG_LEVEL: {log_level_name}")

        return cls(
            api_key=api_key,
            allowed_langs=allowed_langs,
            max_memory_mb=_int_var("POLYEXEC_MAX_MEMORY_MB", 128),
            js_time_limit=_int_var("POLYEXEC_JS_TIME_LIMIT", 30),
            wasm_time_limit=_int_var("POLYEXEC_WASM_TIME_LIMIT", 30),
            remote_timeout=_int_var("POLYEXEC_REMOTE_TIMEOUT", 60),
            log_level=log_level,
            port=_int_var("PORT", 8080),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Alternate constructor used by the API to load configuration.

        This wrapper calls :meth:`load` to construct the configuration.
        It exists to provide a more intuitive name when consumed in
        application code.
        """
        return cls.load()
