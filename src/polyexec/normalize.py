"""Build the response envelope from an executor result."""

from __future__ import annotations

from .executor.base import ExecutionResult
from .models import ExecuteResponse


def normalize(result: ExecutionResult, language: str) -> ExecuteResponse:
    """Map an :class:`ExecutionResult` onto the wire envelope.

    Failed results never carry output.  ``error`` is passed through as is,
    so console errors from a successful JavaScript run remain visible.
    """
    elapsed = result.execution_time_ms
    return ExecuteResponse(
        success=result.success,
        output=result.output if result.success else None,
        error=result.error,
        runtime=result.runtime,
        language=language,
        execution_time_ms=max(elapsed, 0) if elapsed is not None else None,
        hint=result.hint,
        results=result.results,
    )
