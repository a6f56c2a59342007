"""Error taxonomy shared by the executors.

Engines raise these exceptions; the coordinator in
:mod:`polyexec.executor.base` converts every one of them into a failed
:class:`~polyexec.executor.base.ExecutionResult` so that callers always get a
structured result.  ``hint`` carries guidance for correcting the request.
"""

from __future__ import annotations

from typing import Optional


class ExecutionError(Exception):
    """Base class for failures reported as a failed execution result."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class InputError(ExecutionError):
    """The request carried no code to run."""


class EvaluationError(ExecutionError):
    """The interpreter rejected or aborted the snippet."""


class LoadError(ExecutionError):
    """The binary input is malformed or cannot be executed by this backend."""


class ProvisioningError(ExecutionError):
    """A remote sandbox session could not be created or reached."""


class InternalError(ExecutionError):
    """Unexpected failure inside the service itself."""
