"""rerun: a tiny stack language compiled to WebAssembly.

WHY: rerun programs are flat token lists ("p1 p2 add") that map almost
one-to-one onto WebAssembly stack instructions. Compiling them to WAT and
running them through a real assembler and runtime makes the language
executable without writing an interpreter.

HOW: Three-stage pipeline: compile (core: classify tokens, track stack
depth, emit WAT), assemble (toolchain: wat2wasm subprocess with staged
artifacts), run (toolchain: wasmtime instantiation linked against the
relib numeric library). Each stage is independently testable.

RULES:
- The core never touches the filesystem or spawns processes
- Stack errors are reported by the compiler, never left to the assembler
- Every intermediate artifact is removed after use unless cleanup is disabled
"""

__version__ = "0.1.0"
