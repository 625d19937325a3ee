"""
Scheduler - randomized fault and traffic driver for a queue cluster.

The scheduler owns every server slot and every consumer, and walks a
seeded random sequence of actions over them:

    roll in [0, 50)    action
    ---------------    -----------------
    0                  restart a server
    1 - 4              pause a server
    5 - 9              resume a server
    10 - 29            publish a message
    30 - 49            consume a message

After every action, each consumer whose log grew is merged into the
durability oracle. Any disagreement on a shared prefix aborts the run.

Determinism: the same seed, server count and client count always yields
the same sequence of chosen actions and targets. Fault delivery timing in
the system under test is not replayed.
"""

import asyncio
import functools
import random
import time
from typing import Callable

from cluster_exerciser.actions import (
    ActionRegistry,
    ActionType,
    ActionWeights,
)
from cluster_exerciser.clients import (
    ConnectionFactory,
    ConsumerHandle,
    IdentifierGenerator,
    MAX_IDENTIFIER,
    NatsClientConnection,
    default_generator,
)
from cluster_exerciser.env import Env
from cluster_exerciser.errors import (
    ConfigurationError,
    ExerciserError,
    OrderViolationError,
    PayloadDecodeError,
    TransportError,
)
from cluster_exerciser.logging import Logger, LoggingConfig
from cluster_exerciser.logging.exerciser_logging_models import (
    ActionInfo,
    ActionWarning,
    RunFatal,
    RunInfo,
    ServerInfo,
    ValidationDebug,
    ValidationFatal,
)
from cluster_exerciser.results import (
    ActionOutcome,
    RunOutcome,
    RunResult,
)
from cluster_exerciser.servers import ServerHandle, ServerSpec
from cluster_exerciser.validation import DurabilityOracle


ServerFactory = Callable[[ServerSpec], ServerHandle]


class Scheduler:
    def __init__(
        self,
        path: str,
        seed: int,
        servers: int = 3,
        clients: int = 2,
        env: Env | None = None,
        logger: Logger | None = None,
        identifiers: IdentifierGenerator | None = None,
        weights: ActionWeights | None = None,
        server_factory: ServerFactory | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        if servers < 1:
            raise ConfigurationError("At least one server is required")

        if clients < 1:
            raise ConfigurationError("At least one client is required")

        if seed < 0 or seed > MAX_IDENTIFIER:
            raise ConfigurationError(
                f"Seed {seed} does not fit in an unsigned 64-bit integer"
            )

        if env is None:
            env = Env()

        if logger is None:
            logger = Logger()

        if identifiers is None:
            identifiers = default_generator()

        if weights is None:
            weights = ActionWeights()

        if server_factory is None:
            server_factory = ServerHandle

        if connection_factory is None:
            connection_factory = functools.partial(
                NatsClientConnection,
                connect_timeout=env.connect_timeout,
                allow_reconnect=env.EXERCISER_ALLOW_RECONNECT,
                max_reconnect_attempts=env.EXERCISER_MAX_RECONNECT_ATTEMPTS,
                reconnect_time_wait=env.reconnect_time_wait,
            )

        self.seed = seed
        self._env = env
        self._stream = env.EXERCISER_STREAM_NAME
        self._receive_timeout = env.receive_timeout
        self._transport_error_policy = env.EXERCISER_TRANSPORT_ERROR_POLICY
        self._rng = random.Random(seed)
        self._weights = weights
        self._identifiers = identifiers
        self._server_factory = server_factory
        self._connection_factory = connection_factory
        self._clients_count = clients

        self._specs = [
            ServerSpec.from_env(path, index, env) for index in range(servers)
        ]

        self._servers: list[ServerHandle] = []
        self._consumers: list[ConsumerHandle] = []
        self._paused: set[int] = set()
        self._unvalidated: set[int] = set()
        self._oracle = DurabilityOracle()
        self._trace: list[ActionType] = []
        self._steps = 0
        self._started = False
        self._closed = False

        self._registry = ActionRegistry()
        self._registry.register(ActionType.RESTART_SERVER, self.restart_server)
        self._registry.register(ActionType.PAUSE_SERVER, self.pause_server)
        self._registry.register(ActionType.RESUME_SERVER, self.resume_server)
        self._registry.register(ActionType.PUBLISH, self.publish)
        self._registry.register(ActionType.CONSUME, self.consume)

        self._logger = logger
        self._logger.configure(
            name="exerciser",
            path=env.EXERCISER_LOG_FILE,
            template="{timestamp} - {level} - {message}",
        )

    @property
    def servers(self) -> list[ServerHandle]:
        return self._servers

    @property
    def consumers(self) -> list[ConsumerHandle]:
        return self._consumers

    @property
    def paused(self) -> frozenset[int]:
        return frozenset(self._paused)

    @property
    def unvalidated(self) -> frozenset[int]:
        return frozenset(self._unvalidated)

    @property
    def oracle(self) -> DurabilityOracle:
        return self._oracle

    @property
    def trace(self) -> list[ActionType]:
        return self._trace

    @property
    def steps(self) -> int:
        return self._steps

    async def __aenter__(self):
        try:
            await self.start()

        except BaseException:
            await self.close()
            raise

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        if self._started:
            raise RuntimeError("Cluster already started")

        self._started = True

        LoggingConfig().update(
            log_level=self._env.EXERCISER_LOG_LEVEL,
            log_output=self._env.EXERCISER_LOG_OUTPUT,
        )

        await self._logger.log(
            RunInfo(
                message=f"Starting cluster exerciser with seed {self.seed}",
                seed=self.seed,
            ),
            name="exerciser",
        )

        for spec in self._specs:
            server = self._server_factory(spec)

            # Tracked before spawning so teardown covers a failed start.
            self._servers.append(server)

            await self._log_server(server, f"starting server {spec.index}")
            await server.start()

        for server in self._servers:
            await server.wait_until_ready(
                self._env.ready_timeout,
                self._env.ready_poll_interval,
            )

        await self._create_stream()

        for consumer_id in range(self._clients_count):
            server = self._servers[consumer_id % len(self._servers)]
            self._consumers.append(
                await self._create_consumer(consumer_id, server)
            )

    async def _create_stream(self) -> None:
        await self._logger.log(
            RunInfo(
                message=f"creating testing stream {self._stream}",
                seed=self.seed,
            ),
            name="exerciser",
        )

        connection = self._connection_factory(self._servers[0].address)
        await connection.connect()

        try:
            await connection.delete_stream(self._stream)
            await connection.create_stream(
                self._stream,
                [self._stream],
            )

        finally:
            await connection.close()

    async def _create_consumer(
        self,
        consumer_id: int,
        server: ServerHandle,
    ) -> ConsumerHandle:
        name = f"consumer_{consumer_id}"

        await self._logger.log(
            RunInfo(
                message=f"creating testing consumer {name} on server {server.index}",
                seed=self.seed,
            ),
            name="exerciser",
        )

        connection = self._connection_factory(server.address)
        await connection.connect()

        try:
            subscription = await connection.create_consumer(self._stream, name)

        except ExerciserError:
            await connection.close()
            raise

        return ConsumerHandle(
            consumer_id,
            server.index,
            connection,
            subscription,
        )

    async def step(self) -> ActionOutcome:
        if not self._started:
            raise RuntimeError("Cluster not started")

        action = self._weights.choose(self._rng)

        self._steps += 1
        self._trace.append(action)

        handler = self._registry.get(action)
        outcome = await handler()

        await self.validate()

        return outcome

    async def run(self, steps: int) -> RunOutcome:
        start = time.monotonic()
        outcome = RunOutcome(
            seed=self.seed,
            result=RunResult.PASSED,
            duration_seconds=0.0,
            steps_requested=steps,
        )

        try:
            for _ in range(steps):
                outcome.actions.append(await self.step())
                outcome.steps_completed += 1

        except ExerciserError as err:
            outcome.result = RunResult.FAILED
            outcome.error = str(err)

            await self._logger.log(
                RunFatal(
                    message=f"Run with seed {self.seed} failed at step {self._steps} - {err}",
                    seed=self.seed,
                ),
                name="exerciser",
            )

        outcome.duration_seconds = time.monotonic() - start
        outcome.oracle_length = len(self._oracle)

        if outcome.passed:
            await self._logger.log(
                RunInfo(
                    message=(
                        f"Completed {outcome.steps_completed} steps with seed {self.seed}, "
                        f"{outcome.oracle_length} messages observed in agreed order"
                    ),
                    seed=self.seed,
                ),
                name="exerciser",
            )

        return outcome

    async def restart_server(self) -> ActionOutcome:
        start = time.monotonic()
        index = self._rng.randrange(len(self._servers))
        server = self._servers[index]

        await self._log_server(server, f"restarting server {index}")

        await server.restart()
        self._paused.discard(index)

        return ActionOutcome(
            action=ActionType.RESTART_SERVER,
            succeeded=True,
            duration_seconds=time.monotonic() - start,
            details=f"restarted server {index}",
        )

    async def pause_server(self) -> ActionOutcome:
        start = time.monotonic()

        if len(self._paused) == len(self._servers):
            return ActionOutcome(
                action=ActionType.PAUSE_SERVER,
                succeeded=True,
                duration_seconds=time.monotonic() - start,
                details="all servers already paused",
            )

        index = self._rng.randrange(len(self._servers))
        while index in self._paused:
            index = self._rng.randrange(len(self._servers))

        server = self._servers[index]
        await self._log_server(server, f"pausing server {index}")

        server.pause()
        self._paused.add(index)

        return ActionOutcome(
            action=ActionType.PAUSE_SERVER,
            succeeded=True,
            duration_seconds=time.monotonic() - start,
            details=f"paused server {index}",
        )

    async def resume_server(self) -> ActionOutcome:
        start = time.monotonic()

        if len(self._paused) == 0:
            return ActionOutcome(
                action=ActionType.RESUME_SERVER,
                succeeded=True,
                duration_seconds=time.monotonic() - start,
                details="no paused servers",
            )

        index = self._rng.choice(sorted(self._paused))
        server = self._servers[index]

        await self._log_server(server, f"resuming server {index}")

        server.resume()
        self._paused.discard(index)

        return ActionOutcome(
            action=ActionType.RESUME_SERVER,
            succeeded=True,
            duration_seconds=time.monotonic() - start,
            details=f"resumed server {index}",
        )

    async def publish(self) -> ActionOutcome:
        start = time.monotonic()
        consumer = self._rng.choice(self._consumers)
        identifier = self._identifiers.generate()

        await self._logger.log(
            ActionInfo(
                message=f"publishing message {identifier} by client {consumer.consumer_id}",
                step=self._steps,
                action=ActionType.PUBLISH.value,
            ),
            name="exerciser",
        )

        try:
            await consumer.publish(self._stream, identifier)

        except TransportError as err:
            if self._transport_error_policy == "fail":
                raise

            return await self._tolerate(ActionType.PUBLISH, start, err)

        return ActionOutcome(
            action=ActionType.PUBLISH,
            succeeded=True,
            duration_seconds=time.monotonic() - start,
            details=f"client {consumer.consumer_id} published {identifier}",
        )

    async def consume(self) -> ActionOutcome:
        start = time.monotonic()
        consumer = self._rng.choice(self._consumers)

        await self._logger.log(
            ActionInfo(
                message=f"consuming message by client {consumer.consumer_id}",
                step=self._steps,
                action=ActionType.CONSUME.value,
            ),
            name="exerciser",
        )

        try:
            identifier = await consumer.receive(self._receive_timeout)

        except PayloadDecodeError:
            raise

        except TransportError as err:
            if self._transport_error_policy == "fail":
                raise

            return await self._tolerate(ActionType.CONSUME, start, err)

        if identifier is None:
            return ActionOutcome(
                action=ActionType.CONSUME,
                succeeded=True,
                duration_seconds=time.monotonic() - start,
                details=f"client {consumer.consumer_id} timed out",
            )

        self._unvalidated.add(consumer.consumer_id)

        return ActionOutcome(
            action=ActionType.CONSUME,
            succeeded=True,
            duration_seconds=time.monotonic() - start,
            details=f"client {consumer.consumer_id} received {identifier}",
        )

    async def validate(self) -> int:
        unvalidated = sorted(self._unvalidated)
        self._unvalidated.clear()

        appended = 0
        for consumer_id in unvalidated:
            consumer = self._consumers[consumer_id]
            oracle_length = len(self._oracle)

            try:
                appended += self._oracle.merge(consumer_id, consumer.observed)

            except OrderViolationError as err:
                await self._logger.log(
                    ValidationFatal(
                        message=str(err),
                        consumer_id=consumer_id,
                        consumer_length=len(consumer),
                        oracle_length=oracle_length,
                    ),
                    name="exerciser",
                )
                raise

            await self._logger.log(
                ValidationDebug(
                    message=f"validated client {consumer_id}",
                    consumer_id=consumer_id,
                    consumer_length=len(consumer),
                    oracle_length=len(self._oracle),
                ),
                name="exerciser",
            )

        return appended

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True

        server_results = await asyncio.gather(
            *[server.terminate() for server in self._servers],
            return_exceptions=True,
        )

        self._paused.clear()

        consumer_results = await asyncio.gather(
            *[consumer.close() for consumer in self._consumers],
            return_exceptions=True,
        )

        await self._logger.close()

        for result in [*server_results, *consumer_results]:
            if isinstance(result, BaseException):
                raise result

    def abort(self) -> None:
        for server in self._servers:
            server.abort()

        self._paused.clear()
        self._logger.abort()

    async def _tolerate(
        self,
        action: ActionType,
        start: float,
        err: TransportError,
    ) -> ActionOutcome:
        await self._logger.log(
            ActionWarning(
                message=f"tolerating transport error during {action.value} - {err}",
                step=self._steps,
                action=action.value,
            ),
            name="exerciser",
        )

        return ActionOutcome(
            action=action,
            succeeded=False,
            duration_seconds=time.monotonic() - start,
            details=str(err),
        )

    async def _log_server(
        self,
        server: ServerHandle,
        message: str,
    ) -> None:
        await self._logger.log(
            ServerInfo(
                message=message,
                server_index=server.index,
                server_port=server.port,
                pid=server.pid,
            ),
            name="exerciser",
        )
