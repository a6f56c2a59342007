"""
FastAPI application for the code execution service.

This module configures the FastAPI application, registers the execution
routes and enforces authentication via an API key.  Each request is
resolved to one of three coordinators (JavaScript, WebAssembly or Python)
which always answer with the normalized response envelope; only dispatch
failures surface as HTTP errors.

The endpoints are plain ``def`` functions: the executors block while the
code runs, so FastAPI runs them in its worker threadpool.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from ..config import Config
from ..executor import (
    CodeExecutor,
    E2BSandboxFactory,
    JavaScriptExecutor,
    PythonExecutor,
    WasmExecutor,
    quickjs_engine_factory,
    wasm_engine_factory,
)
from ..languages import JAVASCRIPT, PYTHON, WASM, resolve_language
from ..models import ExecuteRequest, ExecuteResponse
from ..normalize import normalize


logger = logging.getLogger("polyexec")

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[polyexec] %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


config = Config.from_env()

logger.setLevel(config.log_level)

logger.info(
    "Loaded config: allowed_langs=%s, max_memory_mb=%s, js_time_limit=%s, wasm_time_limit=%s, remote_timeout=%s",
    config.allowed_langs,
    config.max_memory_mb,
    config.js_time_limit,
    config.wasm_time_limit,
    config.remote_timeout,
)


def build_executors(cfg: Config) -> Dict[str, CodeExecutor]:
    """Create one coordinator per allowed language family."""
    available: Dict[str, CodeExecutor] = {
        JAVASCRIPT: JavaScriptExecutor(
            quickjs_engine_factory(time_limit=cfg.js_time_limit, memory_limit_mb=cfg.max_memory_mb)
        ),
        WASM: WasmExecutor(
            wasm_engine_factory(time_limit=cfg.wasm_time_limit, memory_limit_mb=cfg.max_memory_mb)
        ),
        PYTHON: PythonExecutor(E2BSandboxFactory(timeout=cfg.remote_timeout)),
    }
    return {lang: executor for lang, executor in available.items() if lang in cfg.allowed_langs}


EXECUTORS = build_executors(config)


app = FastAPI(title="Polyglot Code Execution Service", version="0.1.0")


@app.middleware("http")
async def authenticate(request, call_next):
    """Middleware to enforce API key authentication on all requests."""
    path = request.url.path
    method = request.method
    client = getattr(request.client, "host", "unknown")

    logger.info("Incoming request: %s %s from %s", method, path, client)

    if config.api_key:
        provided_key = request.headers.get("x-api-key")
        if provided_key != config.api_key:
            logger.warning("Invalid API key for %s %s from %s", method, path, client)
            return JSONResponse(status_code=401, content={"detail": "Invalid API key"})

    response = await call_next(request)
    logger.info("Response: %s %s -> %s", method, path, response.status_code)
    return response


@app.get("/health")
def health() -> Dict[str, str]:
    """Return a simple health check response."""
    return {"status": "ok"}


@app.post("/v1/execute", response_model=ExecuteResponse)
def execute(req: ExecuteRequest):
    """Execute a snippet, choosing the backend from the request's language tag."""
    return _dispatch(req, req.language)


@app.post("/v1/execute/{language}", response_model=ExecuteResponse)
def execute_language(language: str, req: ExecuteRequest):
    """Execute a snippet on the backend named in the path."""
    return _dispatch(req, language)


def _dispatch(req: ExecuteRequest, tag: Optional[str]):
    family = resolve_language(tag, has_binary=bool(req.precompiled_bytes))
    if family is None or family not in EXECUTORS:
        logger.warning("Unsupported language: %s", tag)
        raise HTTPException(status_code=400, detail=f"Unsupported language: {tag}")

    executor = EXECUTORS[family]
    logger.info(
        "Executing %s request (%d chars, binary=%s)",
        family,
        len(req.code),
        req.precompiled_bytes is not None,
    )

    try:
        result = executor.execute(
            req.code,
            wasm_base64=req.precompiled_bytes,
            entry_point=req.entry_point,
            args=req.args,
        )
    except Exception as exc:
        logger.exception("Unhandled error during execution: %s", exc)
        raise HTTPException(status_code=500, detail="Execution error")

    response = normalize(result, executor.language)
    logger.info(
        "Execution finished: language=%s, success=%s, runtime=%s, time_ms=%s",
        family,
        response.success,
        response.runtime,
        response.execution_time_ms,
    )

    has_input = req.has_input() if family == WASM else bool(req.code.strip())
    if not has_input:
        return JSONResponse(status_code=400, content=response.model_dump(by_alias=True))
    return response
