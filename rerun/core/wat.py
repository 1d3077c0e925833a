"""WebAssembly text emission for rerun instructions.

WHY: The compiler decides *what* to emit; this module owns *how* it looks
in WAT, including the fixed module scaffold around the function body.
Keeping the text in one place means a new instruction variant only needs
one new branch here.

HOW: instruction_text() renders one instruction, render_module() wraps
the rendered body in the module scaffold and adds the stdlib import when
the program calls a library function.

RULES:
- Function: $compute (param $p1 i32) (param $p2 i32) (result i32)
- Export name: "compute"
- stdlib imports are emitted only for functions the program actually calls
- Literals are emitted modulo 2**32 so oversized values wrap silently
"""

from __future__ import annotations

from typing import Iterable, List

from rerun.core.ir import BinaryOp, CallLibrary, Instruction, LoadParam, PushConst

I32_MODULUS = 2 ** 32

# Signatures of the functions relib can provide, keyed by import name.
LIBRARY_SIGNATURES = {
    "pow": "(param i32 i32) (result i32)",
}

_INDENT = "    "


def instruction_text(instruction: Instruction) -> str:
    """Render a single instruction as one line of WAT (without indentation)."""
    if isinstance(instruction, LoadParam):
        return "local.get ${}".format(instruction.param.value)
    if isinstance(instruction, PushConst):
        return "i32.const {}".format(instruction.value % I32_MODULUS)
    if isinstance(instruction, BinaryOp):
        return instruction.op.value
    if isinstance(instruction, CallLibrary):
        return "call ${}".format(instruction.name)
    raise TypeError("Unknown rerun instruction: {!r}".format(instruction))


def render_module(instructions: Iterable[Instruction], imports: Iterable[str] = ()) -> str:
    """Wrap compiled instructions in the module scaffold.

    Args:
        instructions: Instructions in program order.
        imports: Names of stdlib functions to import, in first-use order.

    Returns:
        The complete WAT module text.
    """
    lines: List[str] = ["(module"]
    for name in imports:
        lines.append(
            '  (import "stdlib" "{name}" (func ${name} {sig}))'.format(
                name=name, sig=LIBRARY_SIGNATURES[name],
            )
        )
    lines.append("  (func $compute (param $p1 i32) (param $p2 i32) (result i32)")
    body = [_INDENT + instruction_text(i) for i in instructions]
    if body:
        body[-1] += ")"
        lines.extend(body)
    else:
        lines[-1] += ")"
    lines.append('  (export "compute" (func $compute))')
    lines.append(")")
    return "\n".join(lines) + "\n"
