"""Unit tests for the Command Executor implementations."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from contracts.errors import CommandSpawnFailure
from contracts.execution import ExecutionContext, ExecutionResult
from runtime.executor import ScriptedExecutor, SubprocessExecutor, terminate_process


# ── SubprocessExecutor ───────────────────────────────────────────────


class TestSubprocessExecutor:
    @pytest.mark.asyncio
    async def test_captures_stdout(self) -> None:
        result = await SubprocessExecutor()(["echo", "hello"], "Echo")
        assert result.success
        assert result.output.strip() == "hello"
        assert result.exit_code == 0
        assert result.error is None

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_a_result_not_an_exception(self) -> None:
        result = await SubprocessExecutor()(["sh", "-c", "echo boom >&2; exit 3"], "Fail")
        assert not result.success
        assert result.exit_code == 3
        assert result.error is not None and "boom" in result.error

    @pytest.mark.asyncio
    async def test_missing_binary_raises_spawn_failure(self) -> None:
        with pytest.raises(CommandSpawnFailure) as excinfo:
            await SubprocessExecutor()(["definitely-not-a-real-binary-xk"], "Missing")
        assert excinfo.value.command == ["definitely-not-a-real-binary-xk"]
        assert "definitely-not-a-real-binary-xk" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_empty_command_raises_spawn_failure(self) -> None:
        with pytest.raises(CommandSpawnFailure):
            await SubprocessExecutor()([])

    @pytest.mark.asyncio
    async def test_shell_mode_quotes_arguments(self) -> None:
        result = await SubprocessExecutor()(["echo", "a b; echo injected"], "Shell", use_shell=True)
        assert result.success
        assert result.output.strip() == "a b; echo injected"

    @pytest.mark.asyncio
    async def test_env_and_cwd(self, tmp_path: Path) -> None:
        ctx = ExecutionContext(env={"XK_TEST_VALUE": "42"}, cwd=str(tmp_path))
        result = await SubprocessExecutor()(["sh", "-c", 'echo "$XK_TEST_VALUE $(pwd)"'], "Env", context=ctx)
        value, cwd = result.output.split()
        assert value == "42"
        assert Path(cwd).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_timeout_terminates_process(self) -> None:
        ctx = ExecutionContext(timeout=0.2)
        result = await SubprocessExecutor()(["sleep", "5"], "Sleep", context=ctx)
        assert not result.success
        assert result.timed_out
        assert "timed out" in (result.error or "")

    @pytest.mark.asyncio
    async def test_default_timeout_applies(self) -> None:
        result = await SubprocessExecutor(default_timeout=0.2)(["sleep", "5"], "Sleep")
        assert result.timed_out

    @pytest.mark.asyncio
    async def test_detached_returns_live_process(self) -> None:
        result = await SubprocessExecutor()(["sleep", "5"], "Detached", context=ExecutionContext(detached=True))
        assert result.success
        assert result.process is not None
        assert result.process.returncode is None
        await terminate_process(result.process, grace=1.0)
        assert result.process.returncode is not None


# ── terminate_process ────────────────────────────────────────────────


class TestTerminateProcess:
    @pytest.mark.asyncio
    async def test_already_exited(self) -> None:
        proc = await asyncio.create_subprocess_exec("true")
        await proc.wait()
        assert await terminate_process(proc) == 0


# ── ScriptedExecutor ─────────────────────────────────────────────────


class TestScriptedExecutor:
    @pytest.mark.asyncio
    async def test_replays_in_order_then_default(self) -> None:
        executor = ScriptedExecutor(
            [ExecutionResult(success=True, output="one"), ExecutionResult(success=False, error="two")]
        )
        first = await executor(["a"])
        second = await executor(["b"])
        third = await executor(["c"])
        assert first.output == "one"
        assert second.error == "two"
        assert third.success and third.output == ""
        assert executor.call_count == 3
        assert executor.commands == [["a"], ["b"], ["c"]]

    @pytest.mark.asyncio
    async def test_scripted_exception_is_raised(self) -> None:
        executor = ScriptedExecutor([CommandSpawnFailure(["xcrun"], "No such file or directory")])
        with pytest.raises(CommandSpawnFailure):
            await executor(["xcrun", "simctl"])
        assert executor.call_count == 1

    @pytest.mark.asyncio
    async def test_callable_receives_command(self) -> None:
        executor = ScriptedExecutor([lambda cmd: ExecutionResult(success=True, output=" ".join(cmd))])
        result = await executor(["xcodebuild", "-list"])
        assert result.output == "xcodebuild -list"

    @pytest.mark.asyncio
    async def test_records_label_shell_and_context(self) -> None:
        executor = ScriptedExecutor()
        ctx = ExecutionContext(timeout=5)
        await executor(["open", "-a", "Simulator"], "Open Simulator", True, ctx)
        call = executor.calls[0]
        assert call.label == "Open Simulator"
        assert call.use_shell is True
        assert call.context is ctx
