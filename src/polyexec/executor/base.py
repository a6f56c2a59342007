"""
Base interfaces and dataclasses for code execution backends.

Two roles are defined here:

* an **engine** wraps exactly one execution context (a QuickJS context, a
  WebAssembly store or a remote sandbox session) for the lifetime of one
  request.  Engines are unrelated classes that satisfy the structural
  :class:`Engine` protocol: ``execute`` plus ``dispose``.
* an **executor** (:class:`CodeExecutor`) is the per-language coordinator.
  It validates the request, builds an engine through the factory it was
  given at construction time, measures wall-clock time and guarantees that
  the engine is disposed on every exit path.

The returned :class:`ExecutionResult` captures the outcome in the same shape
for every backend.
"""

from __future__ import annotations

import abc
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, List, Optional, Protocol, TypeVar

from ..errors import ExecutionError, InputError, InternalError

logger = logging.getLogger("polyexec.executor")

NO_CODE_ERROR = "No code provided"
DEFAULT_FAILURE = "Execution failed"
NO_OUTPUT = "Code executed successfully (no output)"


@dataclass
class ExecutionResult:
    """Result of running a code snippet.

    Attributes
    ----------
    success: bool
        Whether the snippet ran to completion.
    output: str, optional
        Captured output.  ``None`` when the run failed.
    error: str, optional
        Error description.  ``None`` on success, except when a JavaScript
        snippet wrote to ``console.error`` without throwing.
    runtime: str
        Label of the backend that produced the result.
    execution_time_ms: int, optional
        Wall‑clock time spent building the engine and running the code.
    hint: str, optional
        Guidance for correcting the request, set on classified failures.
    results: list, optional
        Structured result payloads (remote backend only).
    """

    success: bool
    output: Optional[str]
    error: Optional[str]
    runtime: str
    execution_time_ms: Optional[int] = None
    hint: Optional[str] = None
    results: Optional[List[Any]] = None

    @classmethod
    def failure(
        cls, runtime: str, error: str, hint: Optional[str] = None
    ) -> "ExecutionResult":
        return cls(success=False, output=None, error=error, runtime=runtime, hint=hint)


class Engine(Protocol):
    """Capability every backend offers: run once, then release resources."""

    def execute(self, code: str, **options: Any) -> ExecutionResult:
        ...

    def dispose(self) -> None:
        ...


E = TypeVar("E", bound=Engine)


class CodeExecutor(abc.ABC, Generic[E]):
    """
    Abstract coordinator shared by the per-language executors.

    Subclasses set :attr:`runtime` (the label used on results produced by
    the coordinator itself), implement :meth:`_run` and may override
    :meth:`_has_input` and :meth:`_preflight`.
    """

    runtime: str = "unknown"
    language: str = "unknown"

    def __init__(self, engine_factory: Callable[[], E]) -> None:
        """
        Parameters
        ----------
        engine_factory: callable
            Zero-argument callable returning a fresh engine.  It is invoked
            once per request and only after input validation succeeded.
            Tests pass factories returning deterministic doubles.
        """
        self._engine_factory = engine_factory

    def execute(self, code: str, **options: Any) -> ExecutionResult:
        """Run ``code`` on a fresh engine and return the timed result.

        The engine is disposed before this method returns, whether the run
        succeeded, failed or raised.  Failures never propagate; they are
        reported through the returned result.
        """
        try:
            self._validate(code, **options)
        except InputError as exc:
            return ExecutionResult.failure(self.runtime, exc.message)

        start_time = time.perf_counter()
        early = self._preflight(code, **options)
        if early is not None:
            return _timed(early, start_time)

        engine: Optional[E] = None
        try:
            engine = self._engine_factory()
            result = self._run(engine, code, **options)
        except ExecutionError as exc:
            logger.info("%s execution failed: %s", self.runtime, exc.message)
            result = ExecutionResult.failure(
                self.runtime, exc.message or DEFAULT_FAILURE, hint=exc.hint
            )
        except Exception as exc:
            logger.exception("Unexpected error in %s executor", self.runtime)
            error = InternalError(str(exc) or DEFAULT_FAILURE)
            result = ExecutionResult.failure(self.runtime, error.message)
        finally:
            if engine is not None:
                self._release(engine)
        return _timed(result, start_time)

    def _validate(self, code: str, **options: Any) -> None:
        if not self._has_input(code, **options):
            raise InputError(NO_CODE_ERROR)

    def _has_input(self, code: str, **options: Any) -> bool:
        return bool(code and code.strip())

    def _preflight(self, code: str, **options: Any) -> Optional[ExecutionResult]:
        """Hook for answering a request without building an engine."""
        return None

    @abc.abstractmethod
    def _run(self, engine: E, code: str, **options: Any) -> ExecutionResult:
        """Execute ``code`` on ``engine``.  Called with a freshly built engine."""
        raise NotImplementedError

    def _release(self, engine: E) -> None:
        try:
            engine.dispose()
        except Exception:
            # Teardown failures never replace the computed result.
            logger.exception("Failed to dispose %s engine", self.runtime)


def _timed(result: ExecutionResult, start_time: float) -> ExecutionResult:
    duration = int((time.perf_counter() - start_time) * 1000)
    return replace(result, execution_time_ms=max(duration, 0))
