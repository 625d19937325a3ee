import asyncio
import random
import signal
import sys

import click
import uvloop

from cluster_exerciser.clients import ConnectionFactory, MAX_IDENTIFIER
from cluster_exerciser.env import Env, load_env
from cluster_exerciser.errors import ConfigurationError, ExerciserError
from cluster_exerciser.results import RunOutcome
from cluster_exerciser.scheduler import Scheduler, ServerFactory


async def run_exerciser(
    path: str,
    seed: int,
    servers: int,
    clients: int,
    steps: int,
    env: Env,
    server_factory: ServerFactory | None = None,
    connection_factory: ConnectionFactory | None = None,
) -> RunOutcome:
    loop = asyncio.get_running_loop()
    scheduler = Scheduler(
        path,
        seed,
        servers=servers,
        clients=clients,
        env=env,
        server_factory=server_factory,
        connection_factory=connection_factory,
    )

    run_task = asyncio.current_task()

    def abort():
        scheduler.abort()
        run_task.cancel()

    signals = (signal.SIGINT, signal.SIGTERM)
    for signum in signals:
        loop.add_signal_handler(signum, abort)

    try:
        async with scheduler:
            return await scheduler.run(steps)

    finally:
        for signum in signals:
            loop.remove_signal_handler(signum)


@click.command(
    help="Drive randomized faults and traffic against a NATS JetStream cluster and check every consumer agrees on message order."
)
@click.option(
    "--path",
    default="nats-server",
    show_default=True,
    type=str,
    help="Path to nats-server binary.",
)
@click.option(
    "--seed",
    default=None,
    type=click.IntRange(0, MAX_IDENTIFIER),
    help="Seed for driving faults. Generated and printed when omitted.",
)
@click.option(
    "--clients",
    default=2,
    show_default=True,
    type=click.IntRange(min=1),
    help="Number of concurrent clients.",
)
@click.option(
    "--servers",
    default=3,
    show_default=True,
    type=click.IntRange(min=1),
    help="Number of cluster servers.",
)
@click.option(
    "--steps",
    default=10000,
    show_default=True,
    type=click.IntRange(min=0),
    help="Number of steps to take.",
)
@click.option(
    "--env-file",
    default=None,
    type=str,
    help="Path to a .env file of EXERCISER_* settings.",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["trace", "debug", "info", "warn", "error", "critical", "fatal"]),
    help="Minimum level of log entries to emit.",
)
@click.option(
    "--transport-errors",
    default=None,
    type=click.Choice(["fail", "tolerate"]),
    help="Whether publish and consume transport errors abort the run.",
)
def exercise(
    path: str,
    seed: int | None,
    clients: int,
    servers: int,
    steps: int,
    env_file: str | None,
    log_level: str | None,
    transport_errors: str | None,
):
    overrides: dict[str, str] = {}
    if log_level:
        overrides["EXERCISER_LOG_LEVEL"] = log_level

    if transport_errors:
        overrides["EXERCISER_TRANSPORT_ERROR_POLICY"] = transport_errors

    try:
        env = load_env(
            Env,
            env_file=env_file,
            overrides=overrides,
        )

    except ConfigurationError as err:
        raise click.UsageError(str(err)) from err

    if seed is None:
        seed = random.SystemRandom().getrandbits(64)
        click.echo(f"Generated seed {seed}", err=True)

    try:
        outcome = uvloop.run(
            run_exerciser(
                path,
                seed,
                servers,
                clients,
                steps,
                env,
            )
        )

    except asyncio.CancelledError:
        click.echo(f"Err. - run with seed {seed} aborted", err=True)
        sys.exit(1)

    except ExerciserError as err:
        click.echo(f"Err. - run with seed {seed} failed - {err}", err=True)
        sys.exit(1)

    if not outcome.passed:
        click.echo(
            f"Err. - run with seed {seed} failed after {outcome.steps_completed} steps - {outcome.error}",
            err=True,
        )
        sys.exit(1)
