"""
Executor for precompiled WebAssembly modules.

Only binary modules are executed.  Text input is classified and rejected
with a hint: WAT source must be compiled first, and anything else belongs to
the JavaScript executor.  Binary modules are compiled and instantiated with
``wasmtime`` against a small host import surface:

* ``env.print(value)`` appends the number to the output;
* ``env.print_str(ptr, len)`` appends a placeholder, the host does not read
  module memory;
* ``wasi_snapshot_preview1.fd_write/fd_close/fd_seek/proc_exit`` are stubs
  that do nothing and return zero.

Host functions are typed after the module's own import declarations, so a
module may declare them with whichever numeric signature it was built with.

The entry point is resolved in a fixed order: the caller's function name,
then ``_start``, then ``main``.  Without any of those the output lists the
exported functions.

Execution is interrupted once the configured deadline passes: a timer
thread bumps the engine epoch, which traps the running module.
"""

from __future__ import annotations

import base64
import binascii
import functools
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

from wasmtime import Config as WasmConfig
from wasmtime import Engine as WasmRuntime
from wasmtime import Func, FuncType, Instance, Module, Store, Trap, ValType, WasmtimeError

from ..errors import EvaluationError, LoadError
from .base import CodeExecutor, ExecutionResult

logger = logging.getLogger("polyexec.wasm")

RUNTIME = "WebAssembly (Native)"
NO_OUTPUT = "WASM executed successfully (no output)"
WASM_MAGIC = b"\x00asm"

WAT_ERROR = "WAT format detected. Please compile to WASM binary first."
WAT_HINT = "Use 'wat2wasm' from WABT to compile WAT to WASM."
TEXT_ERROR = "For JavaScript + WASM, use the JavaScript executor."
TEXT_HINT = "Use /v1/execute/javascript for JavaScript code with WebAssembly."
BASE64_ERROR = "precompiledBytes is not valid base64."
BASE64_HINT = "Send the compiled module encoded with standard base64."
MAGIC_ERROR = "Input is not a WebAssembly binary (missing \\0asm header)."
MAGIC_HINT = "Compile the module to the binary format before submitting it."

START_EXPORT = "_start"
MAIN_EXPORT = "main"

Number = Union[int, float]


def is_wat_format(code: str) -> bool:
    return code.strip().startswith("(module")


def decode_wasm_bytes(encoded: str) -> bytes:
    """Decode base64 module bytes, raising :class:`LoadError` on bad input."""
    try:
        # Line-wrapped base64, as produced by the base64 tool, is accepted.
        return base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError):
        raise LoadError(BASE64_ERROR, hint=BASE64_HINT)


def classify_input(code: str, wasm_bytes: Optional[bytes]) -> bytes:
    """Return the module bytes to compile, or raise :class:`LoadError`.

    Text is never compiled: WAT gets a precompilation hint and any other
    text is redirected to the JavaScript executor.
    """
    if not wasm_bytes:
        if is_wat_format(code or ""):
            raise LoadError(WAT_ERROR, hint=WAT_HINT)
        raise LoadError(TEXT_ERROR, hint=TEXT_HINT)
    if not wasm_bytes.startswith(WASM_MAGIC):
        raise LoadError(MAGIC_ERROR, hint=MAGIC_HINT)
    return wasm_bytes


def format_number(value: Any) -> str:
    """Render a wasm value the way it is shown in output lines."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        if value != value:
            return "NaN"
        if value in (float("inf"), float("-inf")):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _zero(kind: ValType) -> Number:
    return 0.0 if kind in (ValType.f32(), ValType.f64()) else 0


def _coerce(value: Number, kind: ValType) -> Number:
    if kind in (ValType.f32(), ValType.f64()):
        return float(value)
    return int(value)


def _stub_return(results: Sequence[ValType]) -> Any:
    if not results:
        return None
    if len(results) == 1:
        return _zero(results[0])
    return [_zero(kind) for kind in results]


class WasmEngine:
    """One wasmtime engine and store, used for a single module run."""

    def __init__(self, time_limit: int = 30, memory_limit_mb: int = 128) -> None:
        wasm_config = WasmConfig()
        wasm_config.epoch_interruption = True
        self.time_limit = time_limit
        self._runtime: Optional[WasmRuntime] = WasmRuntime(wasm_config)
        self._store: Optional[Store] = Store(self._runtime)
        self._store.set_epoch_deadline(1)
        self._store.set_limits(memory_size=memory_limit_mb * 1024 * 1024)
        self._output: List[str] = []

    def execute(
        self,
        code: str,
        wasm_bytes: Optional[bytes] = None,
        entry_point: Optional[str] = None,
        args: Sequence[Number] = (),
    ) -> ExecutionResult:
        if self._runtime is None or self._store is None:
            raise LoadError("WebAssembly engine has already been disposed")
        binary = classify_input(code, wasm_bytes)

        try:
            module = Module(self._runtime, binary)
        except WasmtimeError as exc:
            raise LoadError(str(exc)) from exc
        host_imports = self._host_imports(module)
        try:
            instance = Instance(self._store, module, host_imports)
        except (WasmtimeError, Trap) as exc:
            raise LoadError(str(exc)) from exc

        functions: Dict[str, Func] = {}
        exports = instance.exports(self._store)
        for export in module.exports:
            if isinstance(export.type, FuncType):
                functions[export.name] = exports[export.name]

        timer = threading.Timer(self.time_limit, self._runtime.increment_epoch)
        timer.daemon = True
        timer.start()
        try:
            self._invoke(functions, entry_point, list(args))
        except (WasmtimeError, Trap) as exc:
            raise EvaluationError(str(exc)) from exc
        finally:
            timer.cancel()

        return ExecutionResult(
            success=True,
            output="".join(self._output) or NO_OUTPUT,
            error=None,
            runtime=RUNTIME,
        )

    def dispose(self) -> None:
        self._store = None
        self._runtime = None

    def _invoke(self, functions: Dict[str, Func], entry_point: Optional[str], args: List[Number]) -> None:
        if entry_point and entry_point in functions:
            func = functions[entry_point]
            params = func.type(self._store).params
            if len(args) != len(params):
                raise EvaluationError(
                    f"{entry_point} expects {len(params)} argument(s), got {len(args)}",
                    hint="Pass one numeric argument per function parameter.",
                )
            result = func(self._store, *[_coerce(value, kind) for value, kind in zip(args, params)])
            rendered_args = ", ".join(format_number(value) for value in args)
            logger.debug("Invoked %s with %d argument(s)", entry_point, len(args))
            self._output.append(f"{entry_point}({rendered_args}) = {format_number(result)}")
        elif START_EXPORT in functions:
            functions[START_EXPORT](self._store)
            self._output.append("WASM module executed (_start)")
        elif MAIN_EXPORT in functions:
            result = functions[MAIN_EXPORT](self._store)
            self._output.append(f"main() = {format_number(result)}")
        else:
            names = ", ".join(functions) or "none"
            self._output[:] = [f"Available exports: {names}"]

    def _host_imports(self, module: Module) -> List[Func]:
        handlers: Dict[tuple, Optional[Callable[..., Any]]] = {
            ("env", "print"): self._print,
            ("env", "print_str"): self._print_str,
            ("wasi_snapshot_preview1", "fd_write"): None,
            ("wasi_snapshot_preview1", "fd_close"): None,
            ("wasi_snapshot_preview1", "fd_seek"): None,
            ("wasi_snapshot_preview1", "proc_exit"): None,
        }
        imports: List[Func] = []
        for item in module.imports:
            key = (item.module, item.name)
            if key not in handlers or not isinstance(item.type, FuncType):
                raise LoadError(
                    f"Unsupported import {item.module}.{item.name}",
                    hint="Only env.print, env.print_str and a minimal WASI stub surface are provided.",
                )
            handler = handlers[key]
            results = list(item.type.results)
            if handler is None:
                callback = functools.partial(_ignore, results)
            else:
                callback = functools.partial(_reply, handler, results)
            imports.append(Func(self._store, item.type, callback))
        return imports

    def _print(self, *params: Number) -> None:
        value = format_number(params[0]) if params else ""
        self._output.append(f"{value}\n")

    def _print_str(self, *params: Number) -> None:
        ptr, length = (list(params) + [0, 0])[:2]
        self._output.append(f"[String at {format_number(ptr)}, length {format_number(length)}]\n")


def _ignore(results: List[ValType], *params: Number) -> Any:
    return _stub_return(results)


def _reply(handler: Callable[..., Any], results: List[ValType], *params: Number) -> Any:
    handler(*params)
    return _stub_return(results)


def wasm_engine_factory(time_limit: int = 30, memory_limit_mb: int = 128) -> Callable[[], WasmEngine]:
    """Return a factory building :class:`WasmEngine` with the given limits."""
    return functools.partial(WasmEngine, time_limit=time_limit, memory_limit_mb=memory_limit_mb)


class WasmRunner(Protocol):
    def execute(
        self,
        code: str,
        wasm_bytes: Optional[bytes] = None,
        entry_point: Optional[str] = None,
        args: Sequence[Number] = (),
    ) -> ExecutionResult:
        ...

    def dispose(self) -> None:
        ...


class WasmExecutor(CodeExecutor[WasmRunner]):
    """Run a precompiled WebAssembly module per request."""

    runtime = RUNTIME
    language = "wasm"

    def __init__(self, engine_factory: Callable[[], WasmRunner]) -> None:
        super().__init__(engine_factory)

    def _has_input(self, code: str, **options: Any) -> bool:
        return bool((code and code.strip()) or options.get("wasm_base64"))

    def _run(self, engine: WasmRunner, code: str, **options: Any) -> ExecutionResult:
        encoded = options.get("wasm_base64")
        wasm_bytes = decode_wasm_bytes(encoded) if encoded else None
        return engine.execute(
            code,
            wasm_bytes=wasm_bytes,
            entry_point=options.get("entry_point"),
            args=options.get("args") or (),
        )
