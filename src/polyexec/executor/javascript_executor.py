"""
Executor for JavaScript snippets.

Each request gets a fresh QuickJS context from the ``quickjs`` package.
Before the snippet runs, ``console.log`` and ``console.error`` are replaced
by functions that append to two arrays living inside the context, so
nothing the snippet prints ever reaches the service's own standard output.
The snippet is then evaluated in strict mode and its completion value is
captured together with the console lines.

The context is created with a CPU time limit and a memory limit.  Hitting
either aborts evaluation and is reported as a failed result.  The
``quickjs`` binding refuses calls into Python while a time limit is set,
which is why the console never uses host callables.
"""

from __future__ import annotations

import functools
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

import quickjs

from ..errors import EvaluationError
from .base import NO_OUTPUT, CodeExecutor, ExecutionResult

logger = logging.getLogger("polyexec.javascript")

RUNTIME = "QuickJS (Sandboxed)"
SOURCE_LABEL = "user-code.js"
RESULT_PREFIX = "→ "
UNKNOWN_ERROR = "Unknown error"

CONSOLE_READER = "__polyexec_console"

# The reader is non-writable so a snippet cannot hide its own console lines.
_CONSOLE_SHIM = """
(function () {
    var logs = [];
    var errors = [];
    var line = function (args) {
        return Array.prototype.map.call(args, String).join(" ");
    };
    globalThis.console = {
        log: function () {
            logs.push(line(arguments));
        },
        error: function () {
            errors.push(line(arguments));
        }
    };
    Object.defineProperty(globalThis, "%s", {
        value: function () {
            return {logs: logs.slice(), errors: errors.slice()};
        }
    });
})();
""" % CONSOLE_READER

# Indirect eval runs the snippet in global scope, away from the harness
# locals.  ``void 0`` resets the completion value left by the directive.
_EVAL_HARNESS = """
(function (source, readConsole, stringify) {
    "use strict";
    var describe = function (e) {
        if (e === undefined || e === null) {
            return null;
        }
        if (e.message) {
            return String(e.message);
        }
        return String(e) || null;
    };
    var render = function (value) {
        if (value === undefined || value === null) {
            return null;
        }
        var rendered;
        if (typeof value === "object") {
            try {
                rendered = stringify(value, null, 2);
            } catch (e) {
                rendered = undefined;
            }
        }
        if (rendered === undefined || rendered === null) {
            try {
                rendered = String(value);
            } catch (e) {
                rendered = Object.prototype.toString.call(value);
            }
        }
        return rendered;
    };
    var outcome;
    try {
        outcome = {ok: true, value: (0, eval)('"use strict"; void 0;\\n' + source)};
    } catch (e) {
        outcome = {ok: false, error: describe(e)};
    }
    if (outcome.ok) {
        outcome.value = render(outcome.value);
    }
    var captured = readConsole();
    outcome.logs = captured.logs;
    outcome.errors = captured.errors;
    return stringify(outcome);
})(%s, globalThis.__polyexec_console, JSON.stringify)
"""


class JavaScriptEngine(Protocol):
    def execute(self, code: str) -> ExecutionResult:
        ...

    def dispose(self) -> None:
        ...


class QuickJSEngine:
    """One QuickJS context, used for exactly one evaluation."""

    def __init__(self, time_limit: int = 30, memory_limit_mb: int = 128) -> None:
        context = quickjs.Context()
        context.set_time_limit(time_limit)
        context.set_memory_limit(memory_limit_mb * 1024 * 1024)
        self._context: Optional[quickjs.Context] = context

    def execute(self, code: str) -> ExecutionResult:
        if self._context is None:
            raise EvaluationError("QuickJS context has already been disposed")
        context = self._context

        # The console must be in place before the snippet is evaluated.
        context.eval(_CONSOLE_SHIM)

        logger.debug("Evaluating %s (%d chars)", SOURCE_LABEL, len(code))
        try:
            outcome: Dict[str, Any] = json.loads(context.eval(_EVAL_HARNESS % json.dumps(code)))
        except (quickjs.JSException, MemoryError) as exc:
            # Time and memory limit aborts cannot be caught inside the harness.
            logger.info("Evaluation of %s aborted: %s", SOURCE_LABEL, exc)
            outcome = {"ok": False, "error": str(exc) or None}
            outcome.update(self._read_console(context))

        return build_result(outcome, outcome.get("logs") or [], outcome.get("errors") or [])

    def _read_console(self, context: quickjs.Context) -> Dict[str, List[str]]:
        """Fetch the console lines written before evaluation was aborted."""
        try:
            return json.loads(context.eval("JSON.stringify(%s())" % CONSOLE_READER))
        except (quickjs.JSException, MemoryError) as exc:
            logger.warning("Could not read console of %s: %s", SOURCE_LABEL, exc)
            return {"logs": [], "errors": []}

    def dispose(self) -> None:
        if self._context is not None:
            self._context.gc()
            self._context = None


def build_result(outcome: Dict[str, Any], logs: List[str], errors: List[str]) -> ExecutionResult:
    """Combine the harness outcome with the captured console lines.

    Lines written to ``console.error`` end up in ``error`` but do not turn a
    completed evaluation into a failure.
    """
    success = bool(outcome.get("ok"))
    output = ""
    error_message = ""

    if success:
        if logs:
            output = "\n".join(logs)
        value = outcome.get("value")
        if value is not None:
            output = f"{output}\n{RESULT_PREFIX}{value}" if output else f"{RESULT_PREFIX}{value}"
    else:
        error_message = outcome.get("error") or UNKNOWN_ERROR

    if errors:
        error_message = "\n".join(errors) + ("\n" + error_message if error_message else "")

    return ExecutionResult(
        success=success,
        output=output or (NO_OUTPUT if success else None),
        error=error_message or None,
        runtime=RUNTIME,
    )


def quickjs_engine_factory(
    time_limit: int = 30, memory_limit_mb: int = 128
) -> Callable[[], QuickJSEngine]:
    """Return a factory building :class:`QuickJSEngine` with the given limits."""
    return functools.partial(QuickJSEngine, time_limit=time_limit, memory_limit_mb=memory_limit_mb)


class JavaScriptExecutor(CodeExecutor[JavaScriptEngine]):
    """Evaluate JavaScript in a fresh sandboxed engine per request."""

    runtime = RUNTIME
    language = "javascript"

    def __init__(self, engine_factory: Callable[[], JavaScriptEngine]) -> None:
        super().__init__(engine_factory)

    def _run(self, engine: JavaScriptEngine, code: str, **options: Any) -> ExecutionResult:
        return engine.execute(code)
