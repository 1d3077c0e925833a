"""Toolchain package: assembling and running compiled rerun programs.

WHY: Compiled WAT is only useful once it has been assembled to a binary
and instantiated. Those steps depend on an external tool (wat2wasm), the
filesystem, and a WebAssembly runtime, so they are kept out of the pure
core package.

HOW: artifacts.py stages intermediate files, assembler.py drives
wat2wasm, runtime.py links relib and runs ``compute`` with wasmtime.

RULES:
- All subprocess and filesystem access of the pipeline happens here
- Failures are raised as rerun.core.errors types, never bare OSError
"""

from rerun.toolchain.assembler import Assembler
from rerun.toolchain.runtime import CompiledProgram, import_program, instantiate, run_program

__all__ = ["Assembler", "CompiledProgram", "import_program", "instantiate", "run_program"]
