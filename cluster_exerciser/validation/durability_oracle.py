from cluster_exerciser.errors import OrderViolationError


class DurabilityOracle:
    """
    The canonical order of identifiers agreed by every consumer so far.

    Each consumer log is compared against the oracle over the prefix both
    have seen. The oracle always holds the longest log merged so far, so
    its length equals the maximum consumer log length.
    """

    __slots__ = ("_observed",)

    def __init__(self) -> None:
        self._observed: list[int] = []

    def __len__(self) -> int:
        return len(self._observed)

    @property
    def observed(self) -> tuple[int, ...]:
        return tuple(self._observed)

    def merge(
        self,
        consumer_id: int,
        observed: list[int],
    ) -> int:
        consumer_length = len(observed)
        oracle_length = len(self._observed)
        shared_length = min(consumer_length, oracle_length)

        expected = self._observed[:shared_length]
        seen = observed[:shared_length]

        if expected != seen:
            raise OrderViolationError(
                consumer_id,
                tuple(expected),
                tuple(seen),
            )

        if consumer_length <= oracle_length:
            return 0

        self._observed.extend(observed[shared_length:])

        return consumer_length - oracle_length
