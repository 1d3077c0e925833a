"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: One request model per endpoint, one response model per result shape,
and a shared ErrorResponse that carries the rerun error kind and, for
token-level errors, the 1-based position.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

# wasm i32 parameters accept either the signed or the unsigned reading.
I32Input = Annotated[int, Field(ge=-2 ** 31, le=2 ** 32 - 1)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CompileRequest(BaseModel):
    """A rerun program to compile."""

    tokens: List[str] = Field(description="Program tokens, e.g. ['p1', 'p2', 'add'].")

    model_config = {"json_schema_extra": {
        "examples": [{"tokens": ["p1", "p2", "add"]}]
    }}


class RunRequest(BaseModel):
    """A rerun program to compile, assemble, and run.

    RULES:
    - inputs defaults to the configured RERUN_INPUTS (665, 1)
    - Each input must fit in 32 bits (-2**31 .. 2**32-1); larger values are
      rejected instead of being truncated by the runtime
    """

    tokens: List[str] = Field(description="Program tokens, e.g. ['p1', 'p2', 'cpow'].")
    inputs: Optional[List[I32Input]] = Field(
        default=None,
        min_length=2,
        max_length=2,
        description="Values for p1 and p2. Defaults to the server's configured inputs.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class CompileResponse(BaseModel):
    """The WAT translation of a valid program."""

    tokens: List[str] = Field(description="The compiled program.")
    wat: str = Field(description="WebAssembly text module exporting 'compute'.")
    imports: List[str] = Field(description="stdlib functions the module imports.")
    depths: List[int] = Field(description="Stack depth after each instruction.")


class RunResponse(BaseModel):
    """The result of running a program."""

    tokens: List[str] = Field(description="The program that was run.")
    inputs: List[int] = Field(description="Values passed as p1 and p2.")
    result: int = Field(description="Value returned by 'compute' (signed i32).")


class OpcodeInfo(BaseModel):
    """One entry of the rerun vocabulary."""

    name: str = Field(description="Token text.")
    pops: int = Field(description="Values consumed from the stack.")
    pushes: int = Field(description="Values pushed onto the stack.")
    wat: str = Field(description="Emitted WAT instruction.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    - kind is the rerun error kind (e.g. 'stack_underflow')
    - position is the 1-based token position for token-level errors
    """

    detail: str = Field(description="Human-readable error description.")
    kind: str = Field(description="Error kind.")
    position: Optional[int] = Field(
        default=None,
        description="1-based position of the offending token, when applicable.",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
