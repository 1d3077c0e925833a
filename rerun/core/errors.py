"""Error taxonomy for compiling, assembling, and running rerun programs.

WHY: Callers (CLI, HTTP service, tests) need to tell a malformed program
apart from a broken toolchain. Typed exceptions with structured fields let
the HTTP layer pick a status code and let tests assert on positions and
depths instead of parsing messages.

HOW: Every error derives from RerunError and carries a short ``kind``
string. Compile-time errors carry the offending token's 0-based index and
expose the 1-based ``position`` used in messages. Collaborator errors carry
the path, command, or cause that made them fail.

RULES:
- Messages are user-facing and stable; tests compare them verbatim
- StackUnderflowError distinguishes "are none" (0) from "is only one" (1)
- Positions in messages are 1-based, indexes in attributes are 0-based
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class RerunError(Exception):
    """Base class for all rerun errors."""

    kind = "error"


def _describe(index: int, token: str) -> str:
    return 'Rerun instruction #{} "{}"'.format(index + 1, token)


# ---------------------------------------------------------------------------
# Compile-time errors (raised by rerun.core)
# ---------------------------------------------------------------------------


class CompileError(RerunError):
    """A program that cannot be translated to a well-formed module."""

    kind = "compile_error"


class InvalidTokenError(CompileError):
    """Raised when a token is neither an opcode nor a digit-only literal."""

    kind = "invalid_token"

    def __init__(self, index: int, text: str) -> None:
        self.index = index
        self.text = text
        super().__init__("{} is invalid.".format(_describe(index, text)))

    @property
    def position(self) -> int:
        return self.index + 1


class StackUnderflowError(CompileError):
    """Raised when a two-value instruction finds fewer than two values.

    RULES:
    - available is the stack depth just before the instruction (0 or 1)
    - The message wording for 0 and 1 is part of the user-facing contract
    """

    kind = "stack_underflow"

    def __init__(self, index: int, token: str, available: int) -> None:
        self.index = index
        self.token = token
        self.available = available
        remainder = "is only one." if available == 1 else "are none."
        super().__init__(
            "{} requires two values on stack but there {}".format(
                _describe(index, token), remainder
            )
        )

    @property
    def position(self) -> int:
        return self.index + 1


class StackImbalanceError(CompileError):
    """Raised when a program does not leave exactly one value on the stack."""

    kind = "stack_imbalance"

    def __init__(self, final_depth: int) -> None:
        self.final_depth = final_depth
        super().__init__(
            "Rerun code leaves {} value(s) on stack instead of just one.".format(
                final_depth
            )
        )


# ---------------------------------------------------------------------------
# Collaborator errors (raised by rerun.toolchain)
# ---------------------------------------------------------------------------


class ArtifactIOError(RerunError):
    """Raised when an intermediate .wat or .wasm file cannot be written or read."""

    kind = "artifact_io"

    def __init__(self, action: str, path: Path, cause: BaseException) -> None:
        self.action = action
        self.path = Path(path)
        self.cause = cause
        super().__init__("Unable to {} {} ({})".format(action, self.path, cause))


class AssemblerError(RerunError):
    """Raised when the external assembler fails, is killed, or cannot start.

    HOW: When the tool wrote diagnostics to stderr, they become the message
    since they point at the offending line of WAT. Otherwise the message
    names the exit code or signal.
    """

    kind = "assembler_failure"

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        signal_name: Optional[str] = None,
        stderr: str = "",
        reason: Optional[str] = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.signal_name = signal_name
        self.stderr = stderr
        program = self.command[0] if self.command else "assembler"

        if reason:
            message = "{} {}".format(program, reason)
        elif signal_name:
            message = "{} terminated with signal {}".format(program, signal_name)
        elif stderr.strip():
            message = stderr.strip()
        else:
            message = "{} terminated with exit code {}".format(program, returncode)
        super().__init__(message)


class ModuleLinkError(RerunError):
    """Raised when a compiled module cannot be linked or instantiated."""

    kind = "link_failure"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__("Unable to link rerun module ({})".format(cause))


class ExecutionError(RerunError):
    """Raised when running a compiled program traps (e.g. division by zero)."""

    kind = "execution_trap"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__("Rerun program trapped ({})".format(cause))


class ConfigurationError(RerunError, ValueError):
    """Raised when a configured setting (e.g. RERUN_INPUTS) cannot be parsed."""

    kind = "configuration"
