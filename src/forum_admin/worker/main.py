"""Entry point for the email worker process."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Sequence

import typer
from loguru import logger
from temporalio.worker import Worker

from src.forum_admin.api.utils.app_startup import configure_logging
from src.forum_admin.core.services.jobs.temporal_client import TemporalClientService
from src.forum_admin.runtime.config.config_data import TemporalConfig
from src.forum_admin.runtime.context import get_config
from src.forum_admin.worker.manager import TemporalWorkerManager

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _select_queues(
    requested: list[str] | None, manager: TemporalWorkerManager
) -> list[str]:
    known = sorted(manager.pools)
    if not requested:
        return known

    unknown = sorted(set(requested) - set(known))
    if unknown:
        logger.bind(unknown=unknown, known=known).error("Unknown task queue requested")
        raise typer.Exit(code=2)
    return requested


async def _wait_for_stop_signal() -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # not available on Windows
            pass
    await stop.wait()


async def _serve(workers: Sequence[Worker], drain_timeout: float) -> None:
    """Poll until a stop signal, then let in-flight emails finish."""
    polling = [asyncio.create_task(worker.run()) for worker in workers]
    try:
        await _wait_for_stop_signal()
        logger.bind(drain_timeout=drain_timeout).info("Stopping workers")
        shutdown = asyncio.gather(
            *(worker.shutdown() for worker in workers), return_exceptions=True
        )
        await asyncio.wait_for(asyncio.shield(shutdown), timeout=drain_timeout)
    except TimeoutError:
        logger.warning("Workers did not drain in time; cancelling")
        for task in polling:
            task.cancel()
    finally:
        await asyncio.gather(*polling, return_exceptions=True)


async def _run(
    temporal_config: TemporalConfig,
    manager: TemporalWorkerManager,
    queues: list[str],
    drain_timeout: float,
) -> int:
    temporal = TemporalClientService(temporal_config)
    try:
        client = await temporal.get_client()
        workers = [manager.build_worker(client, queue) for queue in queues]
        logger.bind(queues=queues).info("Email worker polling")
        await _serve(workers, drain_timeout)
    except Exception:
        logger.exception("Email worker stopped with an error")
        return 1
    finally:
        await temporal.close()
    return 0


@app.command(name="serve")
def serve(
    queue: list[str] | None = typer.Option(
        None,
        "--queue",
        "-q",
        help="Task queue to poll (repeatable). Defaults to every registered queue.",
    ),
    drain_timeout: float = typer.Option(
        60.0, "--drain-timeout", help="Seconds to wait for in-flight emails."
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Overrides logging.level from config."
    ),
):
    """Deliver the user and admin emails the API enqueues."""
    config = get_config()
    if log_level:
        config = config.model_copy(
            update={
                "logging": config.logging.model_copy(update={"level": log_level.upper()})
            }
        )
    configure_logging(config)

    if not config.temporal.enabled:
        logger.error("Temporal is disabled; set temporal.enabled to run the worker")
        raise typer.Exit(code=2)

    manager = TemporalWorkerManager()
    queues = _select_queues(queue, manager)
    if config.temporal.task_queue not in queues:
        logger.bind(task_queue=config.temporal.task_queue, queues=queues).warning(
            "The API starts jobs on a queue this worker does not poll"
        )

    code = asyncio.run(_run(config.temporal, manager, queues, drain_timeout))
    raise typer.Exit(code=code)


def main():
    app()


if __name__ == "__main__":
    main()
