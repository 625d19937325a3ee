from .client_connection import ClientConnection, Subscription
from .payload import decode_identifier, encode_identifier


class ConsumerHandle:
    __slots__ = (
        "consumer_id",
        "name",
        "server_index",
        "connection",
        "_subscription",
        "_observed",
    )

    def __init__(
        self,
        consumer_id: int,
        server_index: int,
        connection: ClientConnection,
        subscription: Subscription,
    ) -> None:
        self.consumer_id = consumer_id
        self.name = f"consumer_{consumer_id}"
        self.server_index = server_index
        self.connection = connection
        self._subscription = subscription
        self._observed: list[int] = []

    @property
    def observed(self) -> list[int]:
        return self._observed

    def __len__(self) -> int:
        return len(self._observed)

    async def publish(
        self,
        subject: str,
        identifier: int,
    ) -> None:
        await self.connection.publish(
            subject,
            encode_identifier(identifier),
        )

    async def receive(self, timeout: float) -> int | None:
        payload = await self._subscription.receive(timeout)
        if payload is None:
            return None

        identifier = decode_identifier(payload)
        self._observed.append(identifier)

        return identifier

    async def close(self) -> None:
        await self.connection.close()
