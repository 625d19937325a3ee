import asyncio
import sys
from typing import Dict, TypeVar

from cluster_exerciser.logging.models import Entry, Log

from .logger_stream import LoggerStream

T = TypeVar('T', bound=Entry)


class Logger:
    def __init__(self) -> None:
        self._streams: Dict[str, LoggerStream] = {}

    def configure(
        self,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
    ):
        self._streams[name] = LoggerStream(
            name,
            template=template,
            logfile=path,
        )

    async def log(
        self,
        entry: T,
        name: str = 'default',
    ):
        stream = self._streams.get(name)
        if stream is None:
            stream = self._streams[name] = LoggerStream(name)

        frame = sys._getframe(1)
        code = frame.f_code

        await stream.log(
            Log(
                entry=entry,
                filename=code.co_filename,
                function_name=code.co_name,
                line_number=frame.f_lineno,
            )
        )

    async def close(self):
        await asyncio.gather(
            *[stream.close() for stream in self._streams.values()]
        )

    def abort(self):
        for stream in self._streams.values():
            stream.abort()
