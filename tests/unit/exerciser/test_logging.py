import msgspec
import pytest

from cluster_exerciser.logging import Logger, LoggerStream, LoggingConfig
from cluster_exerciser.logging.config import StreamType
from cluster_exerciser.logging.exerciser_logging_models import (
    RunFatal,
    RunInfo,
    ValidationFatal,
)
from cluster_exerciser.logging.models import Entry, LogLevel


class TestLogLevel:
    @pytest.mark.parametrize("name", ["trace", "debug", "info", "warn", "error", "critical", "fatal"])
    def test_to_level(self, name: str):
        assert LogLevel.to_level(name).value == name.upper()

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError):
            LogLevel.to_level("loud")

    def test_severity_order(self):
        assert (
            LogLevel.TRACE.severity
            < LogLevel.DEBUG.severity
            < LogLevel.INFO.severity
            < LogLevel.WARN.severity
            < LogLevel.ERROR.severity
            < LogLevel.CRITICAL.severity
            < LogLevel.FATAL.severity
        )


class TestLoggingConfig:
    def test_update_level_and_output(self, quiet_logging: LoggingConfig):
        quiet_logging.update(log_level="debug", log_output="stdout")

        assert quiet_logging.level == LogLevel.DEBUG
        assert quiet_logging.output == StreamType.STDOUT
        assert quiet_logging.enabled(LogLevel.INFO)
        assert quiet_logging.enabled(LogLevel.DEBUG)
        assert not quiet_logging.enabled(LogLevel.TRACE)


class TestEntryTemplate:
    def test_formats_fields_and_context(self):
        entry = RunInfo(message="started", seed=9)

        line = entry.to_template(
            "{timestamp} - {level} - {message} - {seed}",
            context={"timestamp": "now"},
        )

        assert line == "now - INFO - started - 9"


class TestLoggerFileOutput:
    @pytest.mark.asyncio
    async def test_writes_json_lines(self, tmp_path):
        logfile = tmp_path / "logs" / "exerciser.json"

        logger = Logger()
        logger.configure(
            name="exerciser",
            path=str(logfile),
            template="{timestamp} - {level} - {message}",
        )

        await logger.log(
            RunFatal(message="run failed", seed=11),
            name="exerciser",
        )
        await logger.log(
            ValidationFatal(
                message="order violation",
                consumer_id=1,
                consumer_length=3,
                oracle_length=4,
            ),
            name="exerciser",
        )
        await logger.close()

        lines = logfile.read_bytes().splitlines()
        assert len(lines) == 2

        first = msgspec.json.decode(lines[0])
        assert first["entry"]["message"] == "run failed"
        assert first["entry"]["seed"] == 11
        assert first["entry"]["level"] == "FATAL"
        assert first["function_name"] == "test_writes_json_lines"

        second = msgspec.json.decode(lines[1])
        assert second["entry"]["consumer_id"] == 1
        assert second["entry"]["oracle_length"] == 4

    @pytest.mark.asyncio
    async def test_filters_below_configured_level(self, tmp_path):
        logfile = tmp_path / "exerciser.json"

        logger = Logger()
        logger.configure(name="exerciser", path=str(logfile))

        await logger.log(RunInfo(message="quiet", seed=1), name="exerciser")
        await logger.close()

        assert not logfile.exists()

    @pytest.mark.asyncio
    async def test_abort_closes_logfile(self, tmp_path):
        logfile = tmp_path / "exerciser.json"

        logger = Logger()
        logger.configure(name="exerciser", path=str(logfile))

        await logger.log(RunFatal(message="first", seed=1), name="exerciser")
        logger.abort()

        await logger.log(RunFatal(message="second", seed=1), name="exerciser")
        await logger.close()

        assert len(logfile.read_bytes().splitlines()) == 2

    @pytest.mark.parametrize("path", ["run.log", "logs"])
    def test_rejects_non_json_logfile(self, tmp_path, path: str):
        """Log files must be .json, so a directory or another suffix is refused up front."""
        with pytest.raises(ValueError, match="must be a .json file"):
            LoggerStream("exerciser", logfile=str(tmp_path / path))


class TestLoggerConsoleOutput:
    @pytest.mark.asyncio
    async def test_console_output(self, capsys, sample_entry: Entry):
        logger = Logger()
        logger.configure(name="exerciser", template="{level} - {message}")

        await logger.log(sample_entry, name="exerciser")
        await logger.close()

        captured = capsys.readouterr()
        assert "ERROR - Test log message" in captured.err

    @pytest.mark.asyncio
    async def test_unconfigured_logger_uses_default_template(self, capsys, sample_entry: Entry):
        logger = Logger()

        await logger.log(sample_entry)
        await logger.close()

        captured = capsys.readouterr()
        assert "ERROR" in captured.err
        assert "test_unconfigured_logger_uses_default_template" in captured.err
