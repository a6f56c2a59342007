"""
Deterministic stand-ins for the real backends.

These doubles do no I/O and start no interpreter.  They record how they
were used (executions, disposals, kills) so tests can check the
coordinators' lifecycle guarantees.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .base import ExecutionResult


class MockJavaScriptEngine:
    """Engine returning a fixed result, or raising a fixed exception."""

    def __init__(self, result: Optional[ExecutionResult] = None, raises: Optional[Exception] = None) -> None:
        self.result = result or ExecutionResult(
            success=True, output="Mock output", error=None, runtime="Mock Engine"
        )
        self.raises = raises
        self.executed: List[str] = []
        self.dispose_count = 0

    def execute(self, code: str) -> ExecutionResult:
        self.executed.append(code)
        if self.raises is not None:
            raise self.raises
        return self.result

    def dispose(self) -> None:
        self.dispose_count += 1


@dataclass
class MockLogs:
    stdout: List[str] = field(default_factory=list)
    stderr: List[str] = field(default_factory=list)


@dataclass
class MockExecutionError:
    name: str
    value: str = ""
    traceback: str = ""


@dataclass
class MockExecution:
    logs: MockLogs
    error: Optional[MockExecutionError] = None
    results: List[Any] = field(default_factory=list)


class MockPythonSandbox:
    """Sandbox session answering every submission with canned output."""

    def __init__(
        self,
        output: str = "Hello, World!",
        error: Optional[MockExecutionError] = None,
        stderr: Optional[List[str]] = None,
        results: Optional[List[Any]] = None,
        raises: Optional[Exception] = None,
    ) -> None:
        self.output = output
        self.error = error
        self.stderr = stderr or []
        self.results = results or []
        self.raises = raises
        self.submitted: List[str] = []
        self.kill_count = 0

    def run_code(self, code: str) -> MockExecution:
        self.submitted.append(code)
        if self.raises is not None:
            raise self.raises
        stdout = [self.output] if self.output else []
        return MockExecution(
            logs=MockLogs(stdout=stdout, stderr=list(self.stderr)),
            error=self.error,
            results=list(self.results),
        )

    def kill(self) -> None:
        self.kill_count += 1


class MockSandboxFactory:
    """Factory handing out one prepared sandbox, or failing to provision."""

    def __init__(self, sandbox: Optional[MockPythonSandbox] = None, raises: Optional[Exception] = None) -> None:
        self.sandbox = sandbox or MockPythonSandbox()
        self.raises = raises
        self.create_count = 0

    def create(self) -> MockPythonSandbox:
        self.create_count += 1
        if self.raises is not None:
            raise self.raises
        return self.sandbox
