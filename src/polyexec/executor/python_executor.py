"""
Executor for running Python code in a remote E2B sandbox.

Every request provisions its own sandbox through a :class:`SandboxFactory`,
submits the code once, reads back stdout, stderr, the structured error and
any rich results, and kills the sandbox again.  The kill happens in the
coordinator's ``finally`` block so it also runs when submission raises.

When no E2B credential is configured the executor does not provision
anything and answers with a clearly labelled demo result instead.  The
credential is looked up on every request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..config import remote_api_key
from ..errors import ProvisioningError
from .base import NO_OUTPUT, CodeExecutor, ExecutionResult

logger = logging.getLogger("polyexec.python")

RUNTIME = "E2B (Cloud Sandbox)"
DEMO_RUNTIME = "Demo Mode"

_RESULT_FIELDS = (
    "text",
    "html",
    "markdown",
    "svg",
    "png",
    "jpeg",
    "pdf",
    "latex",
    "json",
    "javascript",
    "is_main_result",
)


class RemoteSandbox(Protocol):
    """The part of the E2B sandbox API used by the executor."""

    def run_code(self, code: str) -> Any:
        ...

    def kill(self) -> Any:
        ...


class SandboxFactory(Protocol):
    def create(self) -> RemoteSandbox:
        ...


class E2BSandboxFactory:
    """Provision real sandboxes with ``e2b_code_interpreter``."""

    def __init__(self, api_key: Optional[str] = None, timeout: int = 60) -> None:
        self.api_key = api_key
        self.timeout = timeout

    def create(self) -> RemoteSandbox:
        from e2b_code_interpreter import Sandbox

        try:
            sandbox = Sandbox(api_key=self.api_key or remote_api_key(), timeout=self.timeout)
        except Exception as exc:
            raise ProvisioningError(str(exc) or "Failed to create E2B sandbox") from exc
        logger.info("Provisioned E2B sandbox %s", getattr(sandbox, "sandbox_id", "<unknown>"))
        return sandbox


def demo_output(code: str) -> str:
    return (
        "[Demo Mode] Python code execution is simulated.\n\n"
        f"Code:\n{code}\n\n"
        "Note: Set E2B_API_KEY environment variable to enable real code execution."
    )


def serialize_result(item: Any) -> Any:
    """Turn one sandbox result into a JSON-compatible value."""
    if item is None or isinstance(item, (dict, list, str, int, float, bool)):
        return item
    payload: Dict[str, Any] = {}
    for name in _RESULT_FIELDS:
        value = getattr(item, name, None)
        if value is not None:
            payload[name] = value
    return payload or str(item)


class RemoteSandboxEngine:
    """Engine wrapping one provisioned sandbox session."""

    def __init__(self, sandbox: RemoteSandbox) -> None:
        self._sandbox: Optional[RemoteSandbox] = sandbox

    def execute(self, code: str) -> ExecutionResult:
        if self._sandbox is None:
            raise ProvisioningError("Sandbox session has already been released")
        execution = self._sandbox.run_code(code)

        stdout: List[str] = list(execution.logs.stdout or [])
        stderr: List[str] = list(execution.logs.stderr or [])
        error = getattr(execution, "error", None)
        results = getattr(execution, "results", None)

        return ExecutionResult(
            success=not error,
            output="\n".join(stdout) or NO_OUTPUT,
            error=(error.name if error else None) or "\n".join(stderr) or None,
            runtime=RUNTIME,
            results=[serialize_result(item) for item in results] if results is not None else None,
        )

    def dispose(self) -> None:
        if self._sandbox is not None:
            sandbox, self._sandbox = self._sandbox, None
            sandbox.kill()
            logger.info("Released sandbox session")


class PythonExecutor(CodeExecutor[RemoteSandboxEngine]):
    """Execute Python code in a remote sandbox, or simulate it in demo mode."""

    runtime = RUNTIME
    language = "python"

    def __init__(
        self,
        sandbox_factory: Optional[SandboxFactory],
        api_key_source: Callable[[], Optional[str]] = remote_api_key,
    ) -> None:
        """
        Parameters
        ----------
        sandbox_factory: SandboxFactory, optional
            Source of sandbox sessions.  ``None`` forces demo mode.
        api_key_source: callable, optional
            Returns the remote credential or ``None``.  Consulted once per
            request; defaults to the ``E2B_API_KEY`` environment variable.
        """
        self.sandbox_factory = sandbox_factory
        self.api_key_source = api_key_source
        super().__init__(self._create_engine)

    def _create_engine(self) -> RemoteSandboxEngine:
        if self.sandbox_factory is None:
            raise ProvisioningError("No sandbox factory configured")
        return RemoteSandboxEngine(self.sandbox_factory.create())

    def _preflight(self, code: str, **options: Any) -> Optional[ExecutionResult]:
        if self.sandbox_factory is None or not self.api_key_source():
            logger.info("No E2B credential configured; answering in demo mode")
            return ExecutionResult(
                success=True,
                output=demo_output(code),
                error=None,
                runtime=DEMO_RUNTIME,
            )
        return None

    def _run(self, engine: RemoteSandboxEngine, code: str, **options: Any) -> ExecutionResult:
        return engine.execute(code)
