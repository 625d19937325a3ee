import asyncio
import shutil
import time
from asyncio.subprocess import Process

from cluster_exerciser.errors import ProcessControlError, ServerStartError

from .process_control import ProcessControl
from .server_spec import ServerSpec


class ServerHandle:
    """
    Owns one queue server process and its storage directory.

    The handle keeps its spec across restarts, so the replacement process
    binds the same index, port and storage path. Storage is wiped before
    every spawn and removed when the process is terminated.
    """

    __slots__ = (
        "spec",
        "_process",
        "_process_control",
        "_loop",
    )

    def __init__(
        self,
        spec: ServerSpec,
        process_control: ProcessControl | None = None,
    ) -> None:
        if process_control is None:
            process_control = ProcessControl()

        self.spec = spec
        self._process: Process | None = None
        self._process_control = process_control
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def index(self) -> int:
        return self.spec.index

    @property
    def port(self) -> int:
        return self.spec.port

    @property
    def address(self) -> str:
        return self.spec.address

    @property
    def pid(self) -> int | None:
        if self._process:
            return self._process.pid

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        if self._process is not None:
            raise ServerStartError(
                "start",
                self._process.pid,
                f"server {self.index} already owns a process",
            )

        if self._loop is None:
            self._loop = asyncio.get_event_loop()

        await self._loop.run_in_executor(None, self._remove_storage)

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.spec.command(),
            )

        except OSError as err:
            raise ServerStartError(
                "spawn",
                None,
                f"{self.spec.path} for server {self.index} - {err}",
            ) from err

    async def wait_until_ready(
        self,
        timeout: float,
        poll_interval: float = 0.1,
    ) -> None:
        process = self._require_process("await")
        deadline = time.monotonic() + timeout

        while True:
            if process.returncode is not None:
                raise ServerStartError(
                    "start",
                    process.pid,
                    f"server {self.index} exited with code {process.returncode}",
                )

            try:
                _, writer = await asyncio.wait_for(
                    asyncio.open_connection(
                        self.spec.host,
                        self.spec.port,
                    ),
                    timeout=poll_interval,
                )

                writer.close()
                await writer.wait_closed()
                return

            except (OSError, asyncio.TimeoutError):
                pass

            if time.monotonic() >= deadline:
                raise ServerStartError(
                    "start",
                    process.pid,
                    f"server {self.index} not accepting connections on port {self.port} after {timeout}s",
                )

            await asyncio.sleep(poll_interval)

    def pause(self) -> None:
        process = self._require_process("suspend")
        self._process_control.suspend(process.pid)

    def resume(self) -> None:
        process = self._require_process("resume")
        self._process_control.resume(process.pid)

    async def restart(self) -> None:
        await self.terminate()
        await self.start()

    async def terminate(self) -> None:
        process = self._process

        if process is not None:
            if process.returncode is None:
                self._process_control.terminate(process.pid)

            await process.wait()
            self._process = None

        if self._loop is None:
            self._loop = asyncio.get_event_loop()

        await self._loop.run_in_executor(None, self._remove_storage)

    def abort(self) -> None:
        process = self._process
        self._process = None

        if process and process.returncode is None:
            try:
                process.kill()

            except ProcessLookupError:
                pass

        self._remove_storage()

    def _remove_storage(self) -> None:
        shutil.rmtree(self.spec.storage_directory, ignore_errors=True)

    def _require_process(self, operation: str) -> Process:
        if self._process is None:
            raise ProcessControlError(
                operation,
                None,
                f"server {self.index} has no running process",
            )

        return self._process
