import contextvars
from typing import Literal

from cluster_exerciser.logging.models import LogLevel, LogLevelName
from .stream_type import StreamType


LogOutput = Literal['stdout', 'stderr']

_global_log_level = contextvars.ContextVar("_global_log_level", default=LogLevel.INFO)
_global_log_output_type = contextvars.ContextVar("_global_log_output_type", default=StreamType.STDOUT)


class LoggingConfig:
    """
    Minimum level and console stream shared by every logger in the
    current context.
    """

    def __init__(self) -> None:
        self._log_level: contextvars.ContextVar[LogLevel] = _global_log_level
        self._log_output_type: contextvars.ContextVar[StreamType] = _global_log_output_type

    def update(
        self,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
    ):
        if log_level:
            self._log_level.set(
                LogLevel.to_level(log_level)
            )

        if log_output:
            self._log_output_type.set(
                StreamType.STDOUT if log_output == 'stdout' else StreamType.STDERR
            )

    def enabled(self, log_level: LogLevel) -> bool:
        return log_level.severity >= self._log_level.get().severity

    @property
    def level(self) -> LogLevel:
        return self._log_level.get()

    @property
    def output(self) -> StreamType:
        return self._log_output_type.get()
