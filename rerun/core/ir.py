"""Instruction dataclasses and the translation unit they compile into.

WHY: A rerun token on its own is just a string. The compiler, the stack
checker, and the WAT emitter all need to know what a token *means*: which
parameter it loads, which literal it pushes, which operation it applies.
The IR gives every token a typed form that all three consume.

HOW: Four frozen dataclasses form a closed set of variants:
  LoadParam   : push parameter p1 or p2
  PushConst   : push a non-negative integer literal
  BinaryOp    : replace the top two values with an arithmetic result
  CallLibrary : replace the top two values with the result of an
                imported library function
Each variant declares its stack effect as ``pops`` and ``pushes``.
TranslationUnit bundles the instructions with the depth trace and the
final WAT text.

RULES:
- Instruction variants are immutable; one per token, in token order
- div and rem are unsigned (BinaryKind.DIV_U, BinaryKind.REM_U)
- Adding a variant means updating the lexer, the compiler, and the WAT
  emitter; each of them raises TypeError for unknown variants
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Tuple, Union


class Param(str, enum.Enum):
    """The two i32 parameters of every compiled program."""

    P1 = "p1"
    P2 = "p2"


class BinaryKind(str, enum.Enum):
    """Native two-operand i32 operations. Values are WAT mnemonics."""

    ADD = "i32.add"
    SUB = "i32.sub"
    MUL = "i32.mul"
    DIV_U = "i32.div_u"
    REM_U = "i32.rem_u"


@dataclass(frozen=True)
class LoadParam:
    param: Param

    pops = 0
    pushes = 1


@dataclass(frozen=True)
class PushConst:
    value: int

    pops = 0
    pushes = 1


@dataclass(frozen=True)
class BinaryOp:
    op: BinaryKind

    pops = 2
    pushes = 1


@dataclass(frozen=True)
class CallLibrary:
    """A call to a function imported from the ``stdlib`` namespace.

    The computation happens outside the generated module (relib's
    ``exponentiate`` for ``pow``); for stack purposes it behaves exactly
    like a BinaryOp.
    """

    name: str

    pops = 2
    pushes = 1


Instruction = Union[LoadParam, PushConst, BinaryOp, CallLibrary]

INSTRUCTION_TYPES = (LoadParam, PushConst, BinaryOp, CallLibrary)


@dataclass(frozen=True)
class TranslationUnit:
    """The result of compiling one rerun program.

    RULES:
    - tokens: the source program, unchanged
    - instructions: one Instruction per token
    - depths: stack depth after each instruction; the last entry is 1
    - imports: names of stdlib functions the module imports (e.g. ("pow",))
    - text: the complete WAT module handed to the assembler
    """

    tokens: Tuple[str, ...]
    instructions: Tuple[Instruction, ...]
    depths: Tuple[int, ...]
    imports: Tuple[str, ...]
    text: str

    @property
    def needs_stdlib(self) -> bool:
        return bool(self.imports)
