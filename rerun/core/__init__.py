"""Core compilation modules.

WHY: The core package holds the only real algorithm in rerun: turning
tokens into instructions and proving the stack stays balanced. It is
pure Python with no I/O so it can be reused by the CLI, the HTTP service,
and tests alike.

HOW: ir.py defines the instruction variants, lexer.py classifies tokens,
compiler.py runs the depth-tracking pass, wat.py renders WAT text, and
errors.py holds the error taxonomy shared with the toolchain.

RULES:
- No filesystem access, subprocesses, or global state in this package
- Compile errors are raised on the first fault
"""

from rerun.core.compiler import compile_tokens, to_wat
from rerun.core.ir import TranslationUnit

__all__ = ["TranslationUnit", "compile_tokens", "to_wat"]
