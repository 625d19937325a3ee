import asyncio

import nats
from nats.aio.client import Client as NATS
from nats.errors import Error as NatsError
from nats.errors import TimeoutError as NatsTimeoutError
from nats.js import JetStreamContext
from nats.js.api import RetentionPolicy, StreamConfig
from nats.js.errors import NotFoundError

from cluster_exerciser.errors import TransportError


class NatsSubscription:
    __slots__ = (
        "stream",
        "name",
        "_subscription",
    )

    def __init__(
        self,
        stream: str,
        name: str,
        subscription: JetStreamContext.PullSubscription,
    ) -> None:
        self.stream = stream
        self.name = name
        self._subscription = subscription

    async def receive(self, timeout: float) -> bytes | None:
        try:
            messages = await self._subscription.fetch(
                batch=1,
                timeout=timeout,
            )

        except (NatsTimeoutError, asyncio.TimeoutError):
            return None

        except NatsError as err:
            raise TransportError(
                f"Err. - consumer {self.name} failed to fetch from {self.stream} - {err}"
            ) from err

        if len(messages) == 0:
            return None

        message = messages[0]

        try:
            await message.ack()

        except NatsError as err:
            raise TransportError(
                f"Err. - consumer {self.name} failed to acknowledge message - {err}"
            ) from err

        return message.data


class NatsClientConnection:
    """
    ClientConnection backed by nats-py. Streams are JetStream work-queue
    streams and consumers are durable pull consumers.

    The reconnect settings also bound the initial connect: nats-py retries
    an unreachable server up to max_reconnect_attempts times, waiting
    reconnect_time_wait between attempts.
    """

    def __init__(
        self,
        address: str,
        connect_timeout: float = 2,
        allow_reconnect: bool = True,
        max_reconnect_attempts: int = 5,
        reconnect_time_wait: float = 0.5,
    ) -> None:
        self._address = address
        self._connect_timeout = connect_timeout
        self._allow_reconnect = allow_reconnect
        self._max_reconnect_attempts = max_reconnect_attempts
        self._reconnect_time_wait = reconnect_time_wait
        self._client: NATS | None = None
        self._jetstream: JetStreamContext | None = None

    @property
    def address(self) -> str:
        return self._address

    async def connect(self) -> None:
        if self._client is not None:
            return

        try:
            self._client = await nats.connect(
                servers=[self._address],
                connect_timeout=self._connect_timeout,
                allow_reconnect=self._allow_reconnect,
                max_reconnect_attempts=self._max_reconnect_attempts,
                reconnect_time_wait=self._reconnect_time_wait,
            )

        except (NatsError, OSError) as err:
            raise TransportError(
                f"Err. - could not connect to {self._address} - {err}"
            ) from err

        self._jetstream = self._client.jetstream()

    async def create_stream(
        self,
        name: str,
        subjects: list[str],
    ) -> None:
        try:
            await self._require_jetstream().add_stream(
                StreamConfig(
                    name=name,
                    subjects=subjects,
                    retention=RetentionPolicy.WORK_QUEUE,
                )
            )

        except NatsError as err:
            raise TransportError(
                f"Err. - could not create stream {name} - {err}"
            ) from err

    async def delete_stream(self, name: str) -> bool:
        try:
            return await self._require_jetstream().delete_stream(name)

        except NotFoundError:
            return False

        except NatsError as err:
            raise TransportError(
                f"Err. - could not delete stream {name} - {err}"
            ) from err

    async def create_consumer(
        self,
        stream: str,
        name: str,
    ) -> NatsSubscription:
        try:
            subscription = await self._require_jetstream().pull_subscribe(
                stream,
                durable=name,
                stream=stream,
            )

        except NatsError as err:
            raise TransportError(
                f"Err. - could not create consumer {name} on {stream} - {err}"
            ) from err

        return NatsSubscription(
            stream,
            name,
            subscription,
        )

    async def publish(
        self,
        subject: str,
        payload: bytes,
    ) -> None:
        if self._client is None:
            raise TransportError(
                f"Err. - connection to {self._address} is not open"
            )

        try:
            await self._client.publish(subject, payload)

        except NatsError as err:
            raise TransportError(
                f"Err. - could not publish to {subject} via {self._address} - {err}"
            ) from err

    async def close(self) -> None:
        if self._client is None:
            return

        client = self._client
        self._client = None
        self._jetstream = None

        if client.is_closed:
            return

        try:
            await client.close()

        except NatsError as err:
            raise TransportError(
                f"Err. - could not close connection to {self._address} - {err}"
            ) from err

    def _require_jetstream(self) -> JetStreamContext:
        if self._jetstream is None:
            raise TransportError(
                f"Err. - connection to {self._address} is not open"
            )

        return self._jetstream
