"""Instantiate and run compiled rerun modules with wasmtime.

WHY: A compiled rerun program is a WebAssembly module exporting
``compute(p1, p2)``. Programs that use ``cpow`` also import ``stdlib.pow``,
which only exists once the relib numeric library has been instantiated
and linked in. This module owns that linking and the call itself.

HOW: import_program() mirrors the pipeline end to end: compile to text
first (so rerun errors surface before any file is written), load relib
only if the unit imports from stdlib, assemble through the Assembler,
then instantiate with a wasmtime Linker where ``stdlib.pow`` is defined
as relib's ``exponentiate`` export.

RULES:
- relib comes from RERUN_STDLIB_WASM when set, else the bundled relib.wat
  is assembled with the same Assembler; the assembled bytes are
  cached per Assembler instance
- Link and instantiation failures raise ModuleLinkError
- Traps while running raise ExecutionError
- A fresh wasmtime Store per program; nothing is shared between programs
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from wasmtime import Engine, Linker, Module, Store, Trap, WasmtimeError

from rerun import config
from rerun.core.compiler import compile_tokens
from rerun.core.errors import ArtifactIOError, ExecutionError, ModuleLinkError
from rerun.core.ir import TranslationUnit
from rerun.toolchain.artifacts import read_bytes
from rerun.toolchain.assembler import Assembler

logger = logging.getLogger(__name__)

STDLIB_NAMESPACE = "stdlib"

# Import name in compiled modules → export name in relib.
RELIB_EXPORTS = {
    "pow": "exponentiate",
}

# Bundled relib binaries, assembled once per Assembler instance.
_relib_cache: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()


@dataclass
class CompiledProgram:
    """An instantiated rerun module ready to compute results.

    RULES:
    - unit: the TranslationUnit the module was assembled from (None when
      instantiated directly from bytes)
    - compute() may be called any number of times
    """

    store: Store
    function: Any
    unit: Optional[TranslationUnit] = None

    def compute(self, p1: int, p2: int) -> int:
        try:
            return self.function(self.store, p1, p2)
        except (Trap, WasmtimeError) as exc:
            raise ExecutionError(exc) from exc


async def load_stdlib(assembler: Assembler, cleanup: bool = True) -> bytes:
    """Return the relib binary, assembling the bundled source if needed.

    Raises:
        ArtifactIOError: The prebuilt binary or bundled source is unreadable.
        AssemblerError: Assembling relib.wat failed.
    """
    prebuilt = config.stdlib_wasm_path()
    if prebuilt is not None:
        logger.info("Using prebuilt relib from %s", prebuilt)
        return read_bytes(prebuilt)

    cached = _relib_cache.get(assembler)
    if cached is not None:
        return cached

    try:
        source = config.RELIB_SOURCE.read_text(encoding="utf-8")
    except OSError as exc:
        raise ArtifactIOError("read", config.RELIB_SOURCE, exc) from exc
    relib = await assembler.assemble(source, cleanup=cleanup)
    _relib_cache[assembler] = relib
    return relib


def instantiate(
    wasm: bytes,
    stdlib: Optional[bytes] = None,
    unit: Optional[TranslationUnit] = None,
) -> CompiledProgram:
    """Instantiate a compiled module, linking relib when provided.

    Args:
        wasm: Binary module exporting ``compute``.
        stdlib: Binary relib module, or None to link nothing.
        unit: The TranslationUnit ``wasm`` came from, kept for callers.

    Raises:
        ModuleLinkError: A module is invalid, an import cannot be resolved,
            or ``compute`` is not exported.
    """
    engine = Engine()
    store = Store(engine)
    linker = Linker(engine)

    try:
        if stdlib is not None:
            relib = linker.instantiate(store, Module(engine, stdlib))
            relib_exports = relib.exports(store)
            for import_name, export_name in RELIB_EXPORTS.items():
                linker.define(
                    store, STDLIB_NAMESPACE, import_name, relib_exports[export_name],
                )

        instance = linker.instantiate(store, Module(engine, wasm))
        function = instance.exports(store)["compute"]
    except (WasmtimeError, Trap, KeyError) as exc:
        raise ModuleLinkError(exc) from exc

    return CompiledProgram(store=store, function=function, unit=unit)


async def import_program(
    tokens: Iterable[str],
    cleanup: bool = True,
    assembler: Optional[Assembler] = None,
) -> CompiledProgram:
    """Compile, assemble, and instantiate a rerun program.

    WHY: This is the single entry point the CLI and HTTP service use to
    turn tokens into something that can compute.

    HOW: Compiles first, since compilation validates the program without
    touching disk. relib is only loaded for programs that import from it.

    Raises:
        CompileError subclasses, ArtifactIOError, AssemblerError,
        ModuleLinkError.
    """
    unit = compile_tokens(tokens)
    assembler = assembler or Assembler()

    stdlib: Optional[bytes] = None
    if unit.needs_stdlib:
        stdlib = await load_stdlib(assembler, cleanup=cleanup)

    wasm = await assembler.assemble(unit.text, cleanup=cleanup)
    return instantiate(wasm, stdlib=stdlib, unit=unit)


async def run_program(
    tokens: Iterable[str],
    inputs: Tuple[int, int],
    cleanup: bool = True,
    assembler: Optional[Assembler] = None,
) -> int:
    """Import a program and compute its result for ``inputs``."""
    program = await import_program(tokens, cleanup=cleanup, assembler=assembler)
    return program.compute(*inputs)
