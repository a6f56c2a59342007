"""Polyglot sandboxed code execution service.

This package runs untrusted snippets on one of three isolated backends and
returns a normalized result:

* ``javascript`` in an embedded QuickJS context;
* ``wasm`` precompiled WebAssembly modules on wasmtime;
* ``python`` in a remote E2B cloud sandbox, or a demo simulation when no
  credential is configured.

The top‑level modules include:

* ``config`` – configuration handling for environment variables.
* ``errors`` – the error taxonomy reported through failed results.
* ``models`` – Pydantic models defining request and response schemas.
* ``languages`` – language tag aliases.
* ``normalize`` – conversion of executor results into the response envelope.
* ``executor`` – per-language coordinators and their engines.
* ``api`` – FastAPI application exposing HTTP endpoints.
"""

__version__ = "0.1.0"
