import asyncio
import os
import signal
import sys

import pytest
import uvloop
from click.testing import CliRunner

from cluster_exerciser.commands import exercise, run_exerciser
from cluster_exerciser.env import Env
from cluster_exerciser.results import RunOutcome, RunResult

from tests.unit.exerciser.mocks import FakeServer, InMemoryBroker


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def missing_env_file(tmp_path) -> str:
    return str(tmp_path / "missing.env")


def fake_run(outcome: RunOutcome, calls: list):
    def run(coroutine):
        calls.append(coroutine.cr_frame.f_locals)
        coroutine.close()
        return outcome

    return run


class TestExerciseUsage:
    def test_help(self, runner: CliRunner):
        result = runner.invoke(exercise, ["--help"])

        assert result.exit_code == 0
        for option in (
            "--path",
            "--seed",
            "--clients",
            "--servers",
            "--steps",
            "--transport-errors",
        ):
            assert option in result.output

    @pytest.mark.parametrize(
        "args",
        [
            ["--bogus"],
            ["--seed", "abc"],
            ["--seed", "-1"],
            ["--clients", "0"],
            ["--servers", "0"],
            ["--steps", "-5"],
            ["--log-level", "loud"],
            ["--transport-errors", "ignore"],
        ],
    )
    def test_usage_errors_exit_two(self, runner: CliRunner, args: list[str]):
        """Malformed arguments are usage errors."""
        result = runner.invoke(exercise, args)

        assert result.exit_code == 2

    def test_invalid_env_file_exits_two(self, runner: CliRunner, tmp_path):
        env_file = tmp_path / "bad.env"
        env_file.write_text("EXERCISER_BASE_PORT=not-a-port\n")

        result = runner.invoke(exercise, ["--env-file", str(env_file)])

        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_non_json_log_file_exits_two(self, runner: CliRunner, tmp_path):
        env_file = tmp_path / "exerciser.env"
        env_file.write_text(f"EXERCISER_LOG_FILE={tmp_path / 'run.log'}\n")

        result = runner.invoke(exercise, ["--env-file", str(env_file)])

        assert result.exit_code == 2
        assert "must be a .json file" in result.output


class TestExerciseRun:
    def test_passing_run_exits_zero(
        self,
        runner: CliRunner,
        monkeypatch,
        missing_env_file: str,
    ):
        calls = []
        outcome = RunOutcome(
            seed=5,
            result=RunResult.PASSED,
            duration_seconds=0.1,
            steps_requested=10,
            steps_completed=10,
        )
        monkeypatch.setattr(uvloop, "run", fake_run(outcome, calls))

        result = runner.invoke(
            exercise,
            [
                "--seed",
                "5",
                "--servers",
                "1",
                "--clients",
                "1",
                "--steps",
                "10",
                "--env-file",
                missing_env_file,
                "--transport-errors",
                "tolerate",
            ],
        )

        assert result.exit_code == 0
        assert len(calls) == 1

        arguments = calls[0]
        assert arguments["path"] == "nats-server"
        assert arguments["seed"] == 5
        assert arguments["servers"] == 1
        assert arguments["clients"] == 1
        assert arguments["steps"] == 10
        assert arguments["env"].EXERCISER_TRANSPORT_ERROR_POLICY == "tolerate"

    def test_generated_seed_is_reported(
        self,
        runner: CliRunner,
        monkeypatch,
        missing_env_file: str,
    ):
        calls = []
        outcome = RunOutcome(
            seed=0,
            result=RunResult.PASSED,
            duration_seconds=0.1,
            steps_requested=0,
        )
        monkeypatch.setattr(uvloop, "run", fake_run(outcome, calls))

        result = runner.invoke(exercise, ["--steps", "0", "--env-file", missing_env_file])

        assert result.exit_code == 0
        assert f"Generated seed {calls[0]['seed']}" in result.output

    def test_failed_run_exits_one(
        self,
        runner: CliRunner,
        monkeypatch,
        missing_env_file: str,
    ):
        calls = []
        outcome = RunOutcome(
            seed=5,
            result=RunResult.FAILED,
            duration_seconds=0.1,
            steps_requested=10,
            steps_completed=4,
            error="observed messages must occur in the same order for all consumers",
        )
        monkeypatch.setattr(uvloop, "run", fake_run(outcome, calls))

        result = runner.invoke(exercise, ["--seed", "5", "--env-file", missing_env_file])

        assert result.exit_code == 1
        assert "failed after 4 steps" in result.output
        assert "same order" in result.output

    def test_interrupted_run_exits_one(
        self,
        runner: CliRunner,
        monkeypatch,
        missing_env_file: str,
    ):
        def cancelled_run(coroutine):
            coroutine.close()
            raise asyncio.CancelledError()

        monkeypatch.setattr(uvloop, "run", cancelled_run)

        result = runner.invoke(exercise, ["--seed", "5", "--env-file", missing_env_file])

        assert result.exit_code == 1
        assert "run with seed 5 aborted" in result.output


@pytest.mark.skipif(sys.platform == "win32", reason="event loop signal handlers are POSIX only")
class TestRunExerciser:
    @pytest.mark.asyncio
    async def test_completes_requested_steps(
        self,
        env: Env,
        broker: InMemoryBroker,
    ):
        created: list[FakeServer] = []

        def server_factory(spec):
            server = FakeServer(spec)
            created.append(server)
            return server

        outcome = await run_exerciser(
            "nats-server",
            3,
            2,
            2,
            50,
            env,
            server_factory=server_factory,
            connection_factory=broker.connection_factory,
        )

        assert outcome.passed
        assert outcome.steps_completed == 50
        assert all(server.terminated for server in created)
        loop = asyncio.get_running_loop()
        assert loop.remove_signal_handler(signal.SIGINT) is False
        assert loop.remove_signal_handler(signal.SIGTERM) is False

    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    @pytest.mark.asyncio
    async def test_signal_aborts_servers_and_cancels_run(
        self,
        env: Env,
        broker: InMemoryBroker,
        signum: int,
    ):
        """An interrupt kills every server and cancels the run."""
        created: list[FakeServer] = []

        def server_factory(spec):
            server = FakeServer(spec)
            created.append(server)
            return server

        loop = asyncio.get_running_loop()

        run = asyncio.create_task(
            run_exerciser(
                "nats-server",
                3,
                2,
                2,
                10_000_000,
                env,
                server_factory=server_factory,
                connection_factory=broker.connection_factory,
            )
        )

        loop.call_later(0.1, os.kill, os.getpid(), signum)

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(run, timeout=30)

        assert run.cancelled()
        assert len(created) == 2
        assert all(server.aborted for server in created)
        assert all(server.terminated for server in created)
        assert all(connection.closed for connection in broker.connections)
        assert loop.remove_signal_handler(signum) is False
