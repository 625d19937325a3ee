"""
Exceptions raised by the cluster exerciser.

Every failure is fatal to a run. The hierarchy exists so callers can
tell a defect in the system under test (OrderViolationError) apart from
a harness that lost control of its faults (ProcessControlError) or its
transport (TransportError).
"""


class ExerciserError(Exception):
    pass


class ConfigurationError(ExerciserError):
    pass


class ProcessControlError(ExerciserError):
    def __init__(
        self,
        operation: str,
        pid: int | None,
        reason: str,
    ) -> None:
        super().__init__(
            f"Err. - could not {operation} process {pid} - {reason}"
        )
        self.operation = operation
        self.pid = pid
        self.reason = reason


class ServerStartError(ProcessControlError):
    pass


class TransportError(ExerciserError):
    pass


class PayloadDecodeError(TransportError):
    pass


class OrderViolationError(ExerciserError):
    """
    Raised when a consumer observed identifiers in an order that
    disagrees with the order already agreed by the other consumers.
    """

    def __init__(
        self,
        consumer_id: int,
        expected: tuple[int, ...],
        observed: tuple[int, ...],
    ) -> None:
        super().__init__(
            "observed messages must occur in the same order for all consumers - "
            f"consumer {consumer_id} saw {list(observed)} but the agreed order is {list(expected)}"
        )
        self.consumer_id = consumer_id
        self.expected = expected
        self.observed = observed
