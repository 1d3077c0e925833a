"""Compile rerun tokens to WAT while validating stack depth.

WHY: WebAssembly validates stack shape too, but wat2wasm reports it as an
opaque type error about the function body. Tracking the abstract stack
depth while emitting lets the compiler point at the exact rerun token that
breaks the program, before any file is written or process spawned.

HOW: A single left-to-right pass. Each token is classified, its stack
effect is applied to a depth counter, and the instruction is appended.
Consumers check their precondition before the counter changes. After the
last token the depth must be exactly one: the function's single result.

RULES:
- First fault wins; no recovery or continued scanning after an error
- Pushers (LoadParam, PushConst) add one, no precondition
- Consumers (BinaryOp, CallLibrary) need depth >= 2, then net -1
- Final depth must be 1, otherwise StackImbalanceError(final_depth)
- The stdlib import is added only when a CallLibrary is present
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from rerun.core.errors import StackImbalanceError, StackUnderflowError
from rerun.core.ir import INSTRUCTION_TYPES, CallLibrary, Instruction, TranslationUnit
from rerun.core.lexer import classify
from rerun.core.wat import render_module

logger = logging.getLogger(__name__)


def _apply_stack_effect(
    instruction: Instruction,
    depth: int,
    index: int,
    token: str,
) -> int:
    """Return the depth after ``instruction``, raising on underflow."""
    if not isinstance(instruction, INSTRUCTION_TYPES):
        raise TypeError("Unknown rerun instruction: {!r}".format(instruction))
    if depth < instruction.pops:
        raise StackUnderflowError(index=index, token=token, available=depth)
    return depth - instruction.pops + instruction.pushes


def compile_tokens(tokens: Iterable[str]) -> TranslationUnit:
    """Translate a rerun program into a WAT translation unit.

    Args:
        tokens: The program, one opcode or literal per item.

    Returns:
        TranslationUnit with the instructions, the depth after each
        instruction, the stdlib imports, and the module text.

    Raises:
        InvalidTokenError: A token is neither an opcode nor a literal.
        StackUnderflowError: An operation found fewer than two values.
        StackImbalanceError: The program ends with a depth other than 1.
    """
    source = tuple(tokens)
    instructions: List[Instruction] = []
    depths: List[int] = []
    imports: List[str] = []
    depth = 0

    for index, token in enumerate(source):
        instruction = classify(token, index)
        depth = _apply_stack_effect(instruction, depth, index, token)
        if isinstance(instruction, CallLibrary) and instruction.name not in imports:
            imports.append(instruction.name)
        instructions.append(instruction)
        depths.append(depth)

    if depth != 1:
        raise StackImbalanceError(final_depth=depth)

    logger.debug(
        "Compiled %d rerun instruction(s), imports: %s",
        len(instructions),
        ", ".join(imports) or "none",
    )
    return TranslationUnit(
        tokens=source,
        instructions=tuple(instructions),
        depths=tuple(depths),
        imports=tuple(imports),
        text=render_module(instructions, imports),
    )


def to_wat(tokens: Iterable[str]) -> str:
    """Compile ``tokens`` and return only the WAT module text."""
    return compile_tokens(tokens).text
