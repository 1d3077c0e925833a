"""Shared test fixtures for the rerun test suite.

WHY: Toolchain tests need assemblers that behave in controlled ways
(succeed, fail, hang, get killed) without depending on wat2wasm being
installed. Runtime tests need real WASM binaries, which wasmtime can
produce from WAT in-process.

HOW: fake_tool() writes a tiny Python script into tmp_path and returns
an argv prefix that runs it with the current interpreter. The "copy"
tool writes the .wat contents to the -o path so tests can check which
input produced which output. InProcessAssembler swaps the subprocess for
wasmtime.wat2wasm while keeping the artifact staging of the real class.

RULES:
- Every fixture writes only under tmp_path
- Tests needing the real wat2wasm use the requires_wat2wasm marker
"""

from __future__ import annotations

import shutil
import sys
import textwrap
from pathlib import Path
from typing import List

import pytest
import wasmtime

from rerun.toolchain.artifacts import CounterNamer
from rerun.toolchain.assembler import Assembler

requires_wat2wasm = pytest.mark.skipif(
    shutil.which("wat2wasm") is None,
    reason="wat2wasm (WebAssembly Binary Toolkit) not installed",
)


# ---------------------------------------------------------------------------
# Fake assembler scripts
# ---------------------------------------------------------------------------

_TOOLS = {
    "copy": """
        import sys
        src, dst = sys.argv[-3], sys.argv[-1]
        with open(src, "rb") as f_in, open(dst, "wb") as f_out:
            f_out.write(f_in.read())
    """,
    "slow_copy": """
        import sys, time
        src, dst = sys.argv[-3], sys.argv[-1]
        time.sleep(0.3)
        with open(src, "rb") as f_in, open(dst, "wb") as f_out:
            f_out.write(f_in.read())
    """,
    "fail": """
        import sys
        sys.stderr.write("rerun.wat:3:5: error: unexpected token\\n")
        sys.exit(1)
    """,
    "silent_fail": """
        import sys
        sys.exit(3)
    """,
    "no_output": """
        pass
    """,
    "kill": """
        import os, signal
        os.kill(os.getpid(), signal.SIGTERM)
    """,
    "hang": """
        import time
        time.sleep(30)
    """,
}


@pytest.fixture
def fake_tool(tmp_path):
    """Return a factory: fake_tool("copy") -> argv prefix running that script."""

    def _make(name: str) -> List[str]:
        script = tmp_path / "fake_{}.py".format(name)
        script.write_text(textwrap.dedent(_TOOLS[name]), encoding="utf-8")
        return [sys.executable, str(script)]

    return _make


@pytest.fixture
def artifact_dir(tmp_path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# In-process assembler for runtime tests
# ---------------------------------------------------------------------------


class InProcessAssembler(Assembler):
    """Assembler that uses wasmtime.wat2wasm instead of a subprocess."""

    def __init__(self, artifact_dir: Path) -> None:
        super().__init__(command=["wat2wasm"], artifact_dir=artifact_dir, namer=CounterNamer())
        self.calls: List[str] = []

    async def _run(self, argv: List[str]) -> None:
        src, dst = Path(argv[-3]), Path(argv[-1])
        self.calls.append(src.name)
        dst.write_bytes(wasmtime.wat2wasm(src.read_text(encoding="utf-8")))


@pytest.fixture
def in_process_assembler(artifact_dir) -> InProcessAssembler:
    return InProcessAssembler(artifact_dir)
