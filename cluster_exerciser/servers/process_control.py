import psutil

from cluster_exerciser.errors import ProcessControlError


class ProcessControl:
    """
    Signal-level control over a server process, backed by psutil.

    On POSIX hosts suspend and resume deliver SIGSTOP and SIGCONT and
    terminate delivers SIGKILL. On Windows psutil approximates suspend by
    suspending every thread of the process, which stops execution but does
    not freeze the process the way SIGSTOP does.
    """

    def suspend(self, pid: int) -> None:
        self._signal("suspend", pid)

    def resume(self, pid: int) -> None:
        self._signal("resume", pid)

    def terminate(self, pid: int) -> None:
        self._signal("kill", pid)

    def _signal(
        self,
        operation: str,
        pid: int,
    ) -> None:
        try:
            process = psutil.Process(pid)
            getattr(process, operation)()

        except psutil.Error as err:
            raise ProcessControlError(operation, pid, str(err)) from err
