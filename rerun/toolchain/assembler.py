"""Async wrapper around the external WAT-to-WASM assembler.

WHY: rerun does not implement the WebAssembly binary format itself. It
hands the compiled text to wat2wasm from the WebAssembly Binary Toolkit
and reads back the binary. The tool's failure modes (missing executable,
non-zero exit, killed by signal, hang) all have to become one descriptive
error the CLI and HTTP service can show.

HOW: Assembler stages a .wat/.wasm pair through staged_artifacts(), runs
``<command> <stem>.wat -o <stem>.wasm`` with asyncio's subprocess API
and reads the binary back. stdout and stderr are captured; stderr becomes
the error message on failure.

RULES:
- The command comes from RERUN_ASSEMBLER (shell-style split) unless given
- Each call gets its own artifact stem from the injected namer
- Artifacts are removed on every exit path unless cleanup=False
- Timeout (RERUN_ASSEMBLER_TIMEOUT_S) kills the process and raises
- Cancelling assemble() kills the process before the cancellation propagates
- Every failure raises AssemblerError or ArtifactIOError, never OSError
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import signal
from pathlib import Path
from typing import List, Optional, Sequence

from rerun import config
from rerun.core.errors import AssemblerError
from rerun.toolchain.artifacts import (
    ArtifactNamer,
    read_bytes,
    staged_artifacts,
    uuid_namer,
    write_text,
)

logger = logging.getLogger(__name__)


def _signal_name(returncode: int) -> str:
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return str(-returncode)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()
    logger.info("Killed assembler process %s", proc.pid)


class Assembler:
    """Translate WAT text to a WASM binary with an external tool.

    RULES:
    - command: argv prefix, defaults to config.RERUN_ASSEMBLER
    - artifact_dir: defaults to config.artifact_dir()
    - namer: defaults to a fresh uuid_namer()
    - timeout_s: defaults to config.RERUN_ASSEMBLER_TIMEOUT_S
    """

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        artifact_dir: Optional[Path] = None,
        namer: Optional[ArtifactNamer] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.command: List[str] = (
            list(command) if command else shlex.split(config.RERUN_ASSEMBLER)
        )
        self.artifact_dir = Path(artifact_dir) if artifact_dir else config.artifact_dir()
        self.namer = namer or uuid_namer()
        self.timeout_s = timeout_s if timeout_s is not None else config.RERUN_ASSEMBLER_TIMEOUT_S

    async def assemble(self, text: str, cleanup: bool = True) -> bytes:
        """Assemble WAT text and return the WASM binary.

        Args:
            text: A complete WAT module.
            cleanup: False keeps the staged .wat/.wasm files on disk.

        Returns:
            The binary module produced by the assembler.

        Raises:
            ArtifactIOError: Staging or reading an artifact failed.
            AssemblerError: The tool could not run or reported failure.
        """
        with staged_artifacts(self.artifact_dir, self.namer, cleanup=cleanup) as paths:
            write_text(paths.wat, text)
            argv = self.command + [str(paths.wat), "-o", str(paths.wasm)]
            await self._run(argv)
            return read_bytes(paths.wasm)

    async def _run(self, argv: List[str]) -> None:
        logger.info("Running %s", " ".join(shlex.quote(a) for a in argv))
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise AssemblerError(argv, reason="could not be started ({})".format(exc)) from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            raise AssemblerError(
                argv, reason="timed out after {:g}s".format(self.timeout_s)
            )
        finally:
            # Also reached on cancellation; the child must not outlive its artifacts.
            if proc.returncode is None:
                await _kill(proc)

        returncode = proc.returncode
        if returncode == 0:
            return
        stderr_text = stderr.decode("utf-8", errors="replace")
        if returncode is not None and returncode < 0:
            raise AssemblerError(
                argv,
                returncode=returncode,
                signal_name=_signal_name(returncode),
                stderr=stderr_text,
            )
        raise AssemblerError(argv, returncode=returncode, stderr=stderr_text)
