"""Token classification: rerun token string to IR instruction.

WHY: The compiler needs each token's meaning before it can check stack
depth or emit WAT. Classification is stateless, so it lives apart from
the depth-tracking pass and can be tested token by token.

HOW: Opcode names are matched against a fixed vocabulary. Anything else
is a literal if every character is an ASCII digit, otherwise it is
rejected with InvalidTokenError.

RULES:
- p1, p2 → LoadParam
- add, sub, mul → BinaryOp (signedness irrelevant for wraparound i32)
- div, rem → BinaryOp, unsigned
- cpow → CallLibrary("pow")
- Non-empty, all ASCII digits → PushConst; no sign, no radix prefix
- Everything else → InvalidTokenError(index, text)
"""

from __future__ import annotations

from typing import Tuple

from rerun.core.errors import InvalidTokenError
from rerun.core.ir import (
    BinaryKind,
    BinaryOp,
    CallLibrary,
    Instruction,
    LoadParam,
    Param,
    PushConst,
)

OPCODES: Tuple[str, ...] = ("p1", "p2", "add", "sub", "mul", "div", "rem", "cpow")
"""The complete opcode vocabulary, in documentation order."""

_DIGITS = frozenset("0123456789")

_BINARY_OPS = {
    "add": BinaryKind.ADD,
    "sub": BinaryKind.SUB,
    "mul": BinaryKind.MUL,
    "div": BinaryKind.DIV_U,
    "rem": BinaryKind.REM_U,
}


def is_literal(token: str) -> bool:
    """Return True if the token is a non-empty run of ASCII digits.

    str.isdigit() is not used because it also accepts non-ASCII digits
    such as "²" or "٣".
    """
    return bool(token) and all(ch in _DIGITS for ch in token)


def classify(token: str, index: int = 0) -> Instruction:
    """Map one token to its instruction.

    Args:
        token: The token text.
        index: 0-based position of the token, used only for error reporting.

    Returns:
        The Instruction variant for the token.

    Raises:
        InvalidTokenError: The token is neither an opcode nor a literal.
    """
    if token in ("p1", "p2"):
        return LoadParam(Param(token))
    if token in _BINARY_OPS:
        return BinaryOp(_BINARY_OPS[token])
    if token == "cpow":
        return CallLibrary("pow")
    if is_literal(token):
        return PushConst(int(token))
    raise InvalidTokenError(index, token)
