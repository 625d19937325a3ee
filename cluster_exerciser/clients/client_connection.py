from typing import Callable, Protocol


class Subscription(Protocol):
    async def receive(self, timeout: float) -> bytes | None:
        """
        Wait up to timeout seconds for the next message, acknowledge it and
        return its payload. Returns None if nothing arrived in time.
        """
        ...


class ClientConnection(Protocol):
    @property
    def address(self) -> str: ...

    async def connect(self) -> None: ...

    async def create_stream(
        self,
        name: str,
        subjects: list[str],
    ) -> None: ...

    async def delete_stream(self, name: str) -> bool: ...

    async def create_consumer(
        self,
        stream: str,
        name: str,
    ) -> Subscription: ...

    async def publish(
        self,
        subject: str,
        payload: bytes,
    ) -> None: ...

    async def close(self) -> None: ...


ConnectionFactory = Callable[[str], ClientConnection]
