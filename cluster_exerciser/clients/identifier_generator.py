MAX_IDENTIFIER = 2**64 - 1


class IdentifierGenerator:
    """
    Monotonic unsigned 64-bit counter used as the payload of every
    published message. Wraps to zero after MAX_IDENTIFIER.

    NOT thread-safe - the scheduler is the only caller.
    """

    def __init__(
        self,
        start: int = 0,
    ) -> None:
        self._next = start & MAX_IDENTIFIER

    def generate(self) -> int:
        identifier = self._next
        self._next = (self._next + 1) & MAX_IDENTIFIER

        return identifier


_default_generator = IdentifierGenerator()


def default_generator() -> IdentifierGenerator:
    return _default_generator
