import asyncio
import pathlib
import sys
from typing import BinaryIO

import msgspec

from cluster_exerciser.logging.config import LoggingConfig, StreamType
from cluster_exerciser.logging.models import Log


DEFAULT_TEMPLATE = "{timestamp} - {level} - {filename}:{function_name}.{line_number} - {message}"


class LoggerStream:
    """
    Output for one named logger. Enabled entries are rendered through the
    template to stdout or stderr and, when a logfile is set, appended to
    it as JSON lines. Blocking writes run in the default executor.
    """

    def __init__(
        self,
        name: str,
        template: str | None = None,
        logfile: str | None = None,
    ) -> None:
        if logfile is not None and pathlib.Path(logfile).suffix != ".json":
            raise ValueError(f"Err. - log file {logfile} must be a .json file")

        if template is None:
            template = DEFAULT_TEMPLATE

        self.name = name
        self.template = template
        self.logfile = logfile

        self._config = LoggingConfig()
        self._file: BinaryIO | None = None
        self._lock = asyncio.Lock()

    async def log(self, log: Log):
        if self._config.enabled(log.entry.level) is False:
            return

        line = log.entry.to_template(
            self.template,
            context={
                "filename": log.filename,
                "function_name": log.function_name,
                "line_number": log.line_number,
                "thread_id": log.thread_id,
                "timestamp": log.timestamp,
            },
        )

        loop = asyncio.get_running_loop()

        async with self._lock:
            await loop.run_in_executor(
                None,
                self._write,
                line,
                log,
                self._config.output,
            )

    def _write(
        self,
        line: str,
        log: Log,
        stream_type: StreamType,
    ):
        stream = sys.stdout if stream_type == StreamType.STDOUT else sys.stderr
        stream.write(line + "\n")
        stream.flush()

        if self.logfile is None:
            return

        if self._file is None:
            path = pathlib.Path(self.logfile).absolute()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "ab")

        self._file.write(msgspec.json.encode(log) + b"\n")
        self._file.flush()

    async def close(self):
        loop = asyncio.get_running_loop()

        async with self._lock:
            await loop.run_in_executor(None, self.abort)

    def abort(self):
        if self._file is not None:
            self._file.close()
            self._file = None
