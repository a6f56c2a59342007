"""Tests for the QuickJS-backed JavaScript executor."""

from __future__ import annotations

import pytest

from polyexec.executor.javascript_executor import (
    JavaScriptExecutor,
    QuickJSEngine,
    build_result,
    quickjs_engine_factory,
)
from polyexec.executor.mocks import MockJavaScriptEngine


@pytest.fixture
def executor():
    return JavaScriptExecutor(quickjs_engine_factory(time_limit=5, memory_limit_mb=64))


def test_expression_value(executor):
    result = executor.execute("1+1")
    assert result.success is True
    assert result.output == "→ 2"
    assert result.error is None
    assert result.runtime == "QuickJS (Sandboxed)"


def test_log_then_value(executor):
    result = executor.execute('console.log("a"); 1')
    assert result.success is True
    assert result.output == "a\n→ 1"


def test_log_joins_arguments_with_spaces(executor):
    result = executor.execute('console.log("a", 1, true, null); console.log("second")')
    assert result.output == "a 1 true null\nsecond"


def test_thrown_error_message(executor):
    result = executor.execute("throw new Error('bad')")
    assert result.success is False
    assert result.error == "bad"
    assert result.output is None


def test_thrown_string(executor):
    result = executor.execute('throw "plain"')
    assert result.success is False
    assert result.error == "plain"


def test_thrown_object_with_message(executor):
    result = executor.execute('throw {message: "from object"}')
    assert result.error == "from object"


def test_thrown_null_is_unknown_error(executor):
    result = executor.execute("throw null")
    assert result.success is False
    assert result.error == "Unknown error"


def test_object_value_is_pretty_printed(executor):
    result = executor.execute("({a: 1, b: [1, 2]})")
    assert result.success is True
    assert result.output == '→ {\n  "a": 1,\n  "b": [\n    1,\n    2\n  ]\n}'


def test_string_value_is_not_quoted(executor):
    result = executor.execute("'hi' + ' there'")
    assert result.output == "→ hi there"


def test_declarations_produce_no_output(executor):
    result = executor.execute("var x = 1; let y = 2;")
    assert result.success is True
    assert result.output == "Code executed successfully (no output)"
    assert result.error is None


def test_undefined_value_produces_no_output(executor):
    result = executor.execute("undefined")
    assert result.output == "Code executed successfully (no output)"


def test_strict_mode_rejects_undeclared_assignment(executor):
    result = executor.execute("undeclaredVariable = 5")
    assert result.success is False
    assert "undeclaredVariable" in result.error


def test_syntax_error_is_a_failed_result(executor):
    result = executor.execute("function (")
    assert result.success is False
    assert result.output is None
    assert result.error


def test_console_error_without_throw_keeps_success(executor):
    result = executor.execute('console.error("careful"); 5')
    assert result.success is True
    assert result.output == "→ 5"
    assert result.error == "careful"


def test_console_error_is_prepended_to_thrown_error(executor):
    result = executor.execute('console.error("first"); throw new Error("bad")')
    assert result.success is False
    assert result.error == "first\nbad"


def test_console_log_is_dropped_on_failure(executor):
    result = executor.execute('console.log("lost"); throw new Error("bad")')
    assert result.output is None
    assert result.error == "bad"


def test_runaway_loop_hits_time_limit():
    executor = JavaScriptExecutor(quickjs_engine_factory(time_limit=1, memory_limit_mb=64))
    result = executor.execute("while (true) {}")
    assert result.success is False
    assert result.output is None
    assert result.error


def test_console_lines_survive_time_limit_abort():
    executor = JavaScriptExecutor(quickjs_engine_factory(time_limit=1, memory_limit_mb=64))
    result = executor.execute('console.error("starting"); while (true) {}')
    assert result.success is False
    assert result.error.startswith("starting\n")


def test_circular_value_falls_back_to_string(executor):
    result = executor.execute("var a = {}; a.self = a; a")
    assert result.success is True
    assert result.output == "→ [object Object]"
    assert result.error is None


def test_bigint_member_falls_back_to_string(executor):
    result = executor.execute("({n: 1n})")
    assert result.success is True
    assert result.output == "→ [object Object]"


def test_overwritten_json_does_not_break_capture(executor):
    result = executor.execute('console.log("kept"); JSON = null; 3')
    assert result.success is True
    assert result.output == "kept\n→ 3"


def test_requests_do_not_share_state(executor):
    executor.execute("var leaked = 41;")
    result = executor.execute("typeof leaked")
    assert result.output == "→ undefined"


def test_engine_dispose_is_idempotent():
    engine = QuickJSEngine(time_limit=5, memory_limit_mb=64)
    engine.dispose()
    engine.dispose()


def test_disposed_once_when_evaluation_throws():
    engines = []

    class TrackingEngine(QuickJSEngine):
        disposals = 0

        def dispose(self):
            self.disposals += 1
            super().dispose()

    def factory():
        engine = TrackingEngine(time_limit=5, memory_limit_mb=64)
        engines.append(engine)
        return engine

    result = JavaScriptExecutor(factory).execute("throw new Error('bad')")
    assert result.success is False
    assert len(engines) == 1
    assert engines[0].disposals == 1


def test_mock_engine_result_passes_through():
    engine = MockJavaScriptEngine()
    result = JavaScriptExecutor(lambda: engine).execute("anything")
    assert result.output == "Mock output"
    assert result.runtime == "Mock Engine"
    assert engine.dispose_count == 1


def test_build_result_defaults():
    result = build_result({"ok": False, "error": None}, [], [])
    assert result.success is False
    assert result.error == "Unknown error"
    assert result.output is None

    result = build_result({"ok": True, "value": None}, [], ["warn"])
    assert result.success is True
    assert result.output == "Code executed successfully (no output)"
    assert result.error == "warn"
