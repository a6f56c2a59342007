"""
Execution backends for the code execution API.

This package exposes one coordinator per language family.  The API selects
the coordinator from the resolved language; each coordinator validates the
request, builds a fresh engine through the factory it was constructed with,
runs the code once and disposes the engine again:

* ``JavaScriptExecutor`` evaluates JavaScript in an embedded QuickJS context;
* ``WasmExecutor`` runs precompiled WebAssembly modules with wasmtime;
* ``PythonExecutor`` runs Python in a remote E2B sandbox, or in demo mode
  when no credential is configured.
"""

from .base import CodeExecutor, Engine, ExecutionResult
from .javascript_executor import JavaScriptExecutor, QuickJSEngine, quickjs_engine_factory
from .python_executor import E2BSandboxFactory, PythonExecutor, RemoteSandboxEngine
from .wasm_executor import WasmEngine, WasmExecutor, wasm_engine_factory

__all__ = [
    "CodeExecutor",
    "Engine",
    "ExecutionResult",
    "JavaScriptExecutor",
    "QuickJSEngine",
    "quickjs_engine_factory",
    "PythonExecutor",
    "E2BSandboxFactory",
    "RemoteSandboxEngine",
    "WasmExecutor",
    "WasmEngine",
    "wasm_engine_factory",
]
