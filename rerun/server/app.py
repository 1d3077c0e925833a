"""FastAPI application exposing the rerun compiler and runner over HTTP.

WHY: Editors, notebooks, and other tools want to compile or run rerun
programs without shelling out to the CLI. FastAPI provides request
validation, OpenAPI documentation, and async endpoints that fit the async
assembler directly.

HOW: Four endpoints. POST /programs/compile returns the WAT text and depth
trace; POST /programs/run compiles, assembles, links relib when needed,
and returns the result. An exception handler turns rerun errors into
ErrorResponse bodies with a status code chosen by error kind.

RULES:
- Compile errors (invalid token, underflow, imbalance) → 422
- Link errors and traps are properties of the program → 422
- Assembler and artifact failures are server-side problems → 502
- Unparseable configuration (e.g. RERUN_INPUTS) → 500 with an ErrorResponse body
- One Assembler instance is shared; its uuid namer keeps concurrent
  requests from sharing artifact files
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rerun import __version__, config
from rerun.core.compiler import compile_tokens
from rerun.core.errors import (
    ArtifactIOError,
    AssemblerError,
    CompileError,
    ExecutionError,
    ModuleLinkError,
    RerunError,
)
from rerun.core.ir import PushConst
from rerun.core.lexer import OPCODES, classify
from rerun.core.wat import instruction_text
from rerun.server.models import (
    CompileRequest,
    CompileResponse,
    ErrorResponse,
    HealthResponse,
    OpcodeInfo,
    RunRequest,
    RunResponse,
)
from rerun.toolchain.assembler import Assembler
from rerun.toolchain.runtime import run_program

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

assembler = Assembler()

app = FastAPI(
    title="rerun API",
    description=(
        "Compile rerun stack programs to WebAssembly text and run them "
        "for two i32 inputs."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_ERROR_RESPONSES = {
    422: {"model": ErrorResponse, "description": "Invalid rerun program"},
}


def _status_for(exc: RerunError) -> int:
    if isinstance(exc, (CompileError, ModuleLinkError, ExecutionError)):
        return 422
    if isinstance(exc, (AssemblerError, ArtifactIOError)):
        return 502
    return 500


@app.exception_handler(RerunError)
async def rerun_error_handler(request: Request, exc: RerunError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.exception("Toolchain failure on %s", request.url.path, exc_info=exc)
    body = ErrorResponse(
        detail=str(exc),
        kind=exc.kind,
        position=getattr(exc, "position", None),
    )
    return JSONResponse(status_code=status, content=body.model_dump())


# ---------------------------------------------------------------------------
# Endpoints: Programs
# ---------------------------------------------------------------------------


@app.post(
    "/programs/compile",
    response_model=CompileResponse,
    tags=["programs"],
    summary="Compile a program to WAT",
    description="Validate stack depth and return the WebAssembly text module.",
    responses=_ERROR_RESPONSES,
)
async def compile_program(request: CompileRequest) -> CompileResponse:
    unit = compile_tokens(request.tokens)
    return CompileResponse(
        tokens=list(unit.tokens),
        wat=unit.text,
        imports=list(unit.imports),
        depths=list(unit.depths),
    )


@app.post(
    "/programs/run",
    response_model=RunResponse,
    tags=["programs"],
    summary="Compile, assemble, and run a program",
    description=(
        "Runs the full pipeline and returns compute(p1, p2). Programs using "
        "cpow are linked against relib."
    ),
    responses={
        **_ERROR_RESPONSES,
        502: {"model": ErrorResponse, "description": "Assembler or artifact failure"},
    },
)
async def run(request: RunRequest) -> RunResponse:
    if request.inputs is not None:
        inputs = (request.inputs[0], request.inputs[1])
    else:
        inputs = config.parse_inputs(config.RERUN_INPUTS)
    result = await run_program(request.tokens, inputs, assembler=assembler)
    return RunResponse(tokens=request.tokens, inputs=list(inputs), result=result)


# ---------------------------------------------------------------------------
# Endpoints: Vocabulary and health
# ---------------------------------------------------------------------------


@app.get(
    "/opcodes",
    response_model=List[OpcodeInfo],
    tags=["vocabulary"],
    summary="List the rerun vocabulary",
)
async def list_opcodes() -> List[OpcodeInfo]:
    result = []
    for name in OPCODES:
        instruction = classify(name)
        result.append(OpcodeInfo(
            name=name,
            pops=instruction.pops,
            pushes=instruction.pushes,
            wat=instruction_text(instruction),
        ))
    result.append(OpcodeInfo(
        name="<digits>",
        pops=PushConst.pops,
        pushes=PushConst.pushes,
        wat="i32.const <digits>",
    ))
    return result


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the rerun-api console script."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
