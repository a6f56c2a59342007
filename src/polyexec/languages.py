"""Map language tags from fenced code blocks onto executor families."""

from __future__ import annotations

from typing import Optional

PYTHON = "python"
JAVASCRIPT = "javascript"
WASM = "wasm"

ALIASES = {
    "python": PYTHON,
    "py": PYTHON,
    "javascript": JAVASCRIPT,
    "js": JAVASCRIPT,
    # TypeScript is handed to QuickJS as-is; type annotations fail to parse.
    "typescript": JAVASCRIPT,
    "ts": JAVASCRIPT,
    "wasm": WASM,
    "wat": WASM,
}


def resolve_language(tag: Optional[str], has_binary: bool = False) -> Optional[str]:
    """Return the executor family for ``tag``, or ``None`` if unsupported.

    Without a tag, requests carrying a binary go to ``wasm`` and everything
    else to ``python``.
    """
    if tag is None or not tag.strip():
        return WASM if has_binary else PYTHON
    return ALIASES.get(tag.strip().lower())
