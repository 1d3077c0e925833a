"""Tests for the async assembler wrapper.

WHY: wat2wasm is an external process with several ways to fail. Each one
must become a single AssemblerError with useful context, and staged
artifacts must be removed regardless.

HOW: Fake tools (see conftest.fake_tool) stand in for wat2wasm: one
copies input to output, others fail, get killed, or hang. One test runs
the real wat2wasm when it is installed. Async methods are driven with
asyncio.run() from synchronous tests.
"""

import asyncio
import sys

import pytest

from conftest import requires_wat2wasm
from rerun.core.compiler import to_wat
from rerun.core.errors import ArtifactIOError, AssemblerError
from rerun.toolchain.artifacts import CounterNamer
from rerun.toolchain.assembler import Assembler


def _assembler(command, artifact_dir, **kwargs):
    return Assembler(command=command, artifact_dir=artifact_dir, namer=CounterNamer(), **kwargs)


class TestSuccess:
    def test_returns_tool_output(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("copy"), artifact_dir)
        assert asyncio.run(asm.assemble("(module)")) == b"(module)"

    def test_removes_artifacts(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("copy"), artifact_dir)
        asyncio.run(asm.assemble("(module)"))
        assert list(artifact_dir.iterdir()) == []

    def test_keeps_artifacts_when_asked(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("copy"), artifact_dir)
        asyncio.run(asm.assemble("(module)", cleanup=False))
        assert sorted(p.name for p in artifact_dir.iterdir()) == ["rerun-1.wasm", "rerun-1.wat"]

    def test_concurrent_calls_do_not_collide(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("slow_copy"), artifact_dir)
        texts = ["(module ;; {} )".format(i) for i in range(4)]

        async def _run_all():
            return await asyncio.gather(*(asm.assemble(t) for t in texts))

        results = asyncio.run(_run_all())
        assert results == [t.encode("utf-8") for t in texts]
        assert list(artifact_dir.iterdir()) == []


class TestFailures:
    def test_nonzero_exit_uses_stderr(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("fail"), artifact_dir)
        with pytest.raises(AssemblerError) as info:
            asyncio.run(asm.assemble("(module)"))
        assert info.value.returncode == 1
        assert str(info.value) == "rerun.wat:3:5: error: unexpected token"
        assert list(artifact_dir.iterdir()) == []

    def test_nonzero_exit_without_stderr(self, fake_tool, artifact_dir):
        command = fake_tool("silent_fail")
        asm = _assembler(command, artifact_dir)
        with pytest.raises(AssemblerError) as info:
            asyncio.run(asm.assemble("(module)"))
        assert str(info.value) == "{} terminated with exit code 3".format(command[0])

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
    def test_killed_by_signal(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("kill"), artifact_dir)
        with pytest.raises(AssemblerError) as info:
            asyncio.run(asm.assemble("(module)"))
        assert info.value.signal_name == "SIGTERM"
        assert "terminated with signal SIGTERM" in str(info.value)

    def test_timeout_kills_tool(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("hang"), artifact_dir, timeout_s=0.5)
        with pytest.raises(AssemblerError, match="timed out after 0.5s"):
            asyncio.run(asm.assemble("(module)"))
        assert list(artifact_dir.iterdir()) == []

    def test_cancellation_kills_tool(self, fake_tool, artifact_dir, monkeypatch):
        started = []
        real_exec = asyncio.create_subprocess_exec

        async def _recording_exec(*args, **kwargs):
            proc = await real_exec(*args, **kwargs)
            started.append(proc)
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", _recording_exec)
        asm = _assembler(fake_tool("hang"), artifact_dir)

        async def _cancel_while_running():
            task = asyncio.ensure_future(asm.assemble("(module)"))
            await asyncio.sleep(0.5)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(_cancel_while_running())
        assert len(started) == 1
        assert started[0].returncode is not None
        assert list(artifact_dir.iterdir()) == []

    def test_missing_executable(self, artifact_dir):
        asm = _assembler(["definitely-not-a-real-wat2wasm"], artifact_dir)
        with pytest.raises(AssemblerError, match="could not be started"):
            asyncio.run(asm.assemble("(module)"))
        assert list(artifact_dir.iterdir()) == []

    def test_missing_output_is_artifact_error(self, fake_tool, artifact_dir):
        asm = _assembler(fake_tool("no_output"), artifact_dir)
        with pytest.raises(ArtifactIOError) as info:
            asyncio.run(asm.assemble("(module)"))
        assert info.value.action == "read"
        assert info.value.path.suffix == ".wasm"


class TestDefaults:
    def test_command_from_config(self, monkeypatch, tmp_path):
        monkeypatch.setattr("rerun.config.RERUN_ASSEMBLER", "wat2wasm --enable-all")
        monkeypatch.setattr("rerun.config.RERUN_ARTIFACT_DIR", str(tmp_path))
        asm = Assembler()
        assert asm.command == ["wat2wasm", "--enable-all"]
        assert asm.artifact_dir == tmp_path


@requires_wat2wasm
class TestRealWat2Wasm:
    def test_assembles_compiled_program(self, artifact_dir):
        asm = Assembler(artifact_dir=artifact_dir)
        binary = asyncio.run(asm.assemble(to_wat(["p1", "p2", "add"])))
        assert binary[:4] == b"\0asm"
        assert list(artifact_dir.iterdir()) == []
