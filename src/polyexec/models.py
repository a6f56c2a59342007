"""Pydantic models for request and response bodies.

Field names on the wire are camelCase (``precompiledBytes``, ``entryPoint``,
``executionTimeMs``).  The request also accepts the older ``wasmBytes`` and
``functionName`` spellings.
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ExecuteRequest(BaseModel):
    """Request body for executing a snippet."""

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(default="", description="Source code to execute.")
    language: Optional[str] = Field(
        default=None,
        description="Language tag such as 'python', 'js' or 'wasm'. Path routes ignore it.",
    )
    precompiled_bytes: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("precompiledBytes", "wasmBytes"),
        serialization_alias="precompiledBytes",
        description="Base64 encoded WebAssembly binary.",
    )
    entry_point: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("entryPoint", "functionName"),
        serialization_alias="entryPoint",
        description="Exported WebAssembly function to call.",
    )
    args: List[Union[int, float]] = Field(
        default_factory=list, description="Numeric arguments for the entry point."
    )

    def has_input(self) -> bool:
        return bool(self.code.strip() or self.precompiled_bytes)


class ExecuteResponse(BaseModel):
    """Normalized response body shared by every backend."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    output: Optional[str] = None
    error: Optional[str] = None
    runtime: str
    language: str
    execution_time_ms: Optional[int] = Field(default=None, ge=0, alias="executionTimeMs")
    hint: Optional[str] = None
    results: Optional[List[Any]] = None
