from collections.abc import Callable
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any

from temporalio.client import Client
from temporalio.worker import Worker

from src.forum_admin.worker.registry import (
    autodiscover_modules,
    get_activities_by_queue,
    get_workflows_by_queue,
)


@dataclass
class Pool:
    """Workflows and activities served on one task queue."""

    queue: str
    workflows: list[type[Any]] = field(default_factory=list)
    activities: list[Callable[..., Any]] = field(default_factory=list)

    @property
    def handlers(self) -> list[Any]:
        return [*self.workflows, *self.activities]


def _declared_queue(handler: Any) -> str | None:
    return getattr(handler, "__workflow_queue__", None) or getattr(
        handler, "__activity_queue__", None
    )


class TemporalWorkerManager:
    """Builds one Temporal ``Worker`` per task queue from the registry."""

    def __init__(
        self,
        packages: list[str] | None = None,
        max_concurrent_workflow_tasks: int = 64,
        max_concurrent_activities: int = 50,
    ):
        autodiscover_modules(packages)
        self._max_workflow_tasks = max_concurrent_workflow_tasks
        self._max_activities = max_concurrent_activities
        self._pools = self._collect_pools()

    @property
    def pools(self) -> dict[str, Pool]:
        return self._pools

    @staticmethod
    def _collect_pools() -> dict[str, Pool]:
        pools: dict[str, Pool] = {}
        by_name = attrgetter("__name__")
        for queue, workflows in get_workflows_by_queue().items():
            pool = pools.setdefault(queue, Pool(queue=queue))
            pool.workflows.extend(sorted(workflows, key=by_name))
        for queue, activities in get_activities_by_queue().items():
            pool = pools.setdefault(queue, Pool(queue=queue))
            pool.activities.extend(sorted(activities, key=by_name))
        return pools

    def build_worker(self, client: Client, task_queue: str) -> Worker:
        """Create a worker polling ``task_queue``.

        Raises:
            ValueError: Nothing is registered for the queue
            RuntimeError: A handler in the pool declares another queue
        """
        pool = self._pools.get(task_queue)
        if pool is None or not pool.handlers:
            raise ValueError(f"No handlers registered for queue '{task_queue}'")

        misplaced = [
            h.__name__ for h in pool.handlers if _declared_queue(h) != task_queue
        ]
        if misplaced:
            raise RuntimeError(
                f"{', '.join(misplaced)} not declared for queue '{task_queue}'"
            )

        return Worker(
            client,
            task_queue=task_queue,
            workflows=pool.workflows,
            activities=pool.activities,
            max_concurrent_workflow_tasks=self._max_workflow_tasks,
            max_concurrent_activities=self._max_activities,
        )
