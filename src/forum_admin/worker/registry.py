"""Task-queue registry for the email worker.

Activities and workflows declare the queue they are served on with the
decorators below. ``autodiscover_modules`` imports the worker packages so the
decorators have run before any worker is built.
"""

import importlib
import pkgutil
from collections import defaultdict
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar, cast

from temporalio import activity, workflow

DEFAULT_PACKAGES = [
    "src.forum_admin.worker.activities",
    "src.forum_admin.worker.workflows",
]

P = ParamSpec("P")
R = TypeVar("R")
WorkflowClass = TypeVar("WorkflowClass", bound=type)

_activities: defaultdict[str, set[Callable[..., Any]]] = defaultdict(set)
_workflows: defaultdict[str, set[type]] = defaultdict(set)


def _require_queue(queue: str, decorator: str) -> None:
    if not queue:
        raise ValueError(f"{decorator} requires 'queue'")


def activity_defn(
    *, queue: str, **activity_kwargs: Any
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """``@activity.defn`` that also records the activity under ``queue``."""
    _require_queue(queue, "activity_defn")

    def register(fn: Callable[P, R]) -> Callable[P, R]:
        defined = activity.defn(**activity_kwargs)(fn)
        setattr(defined, "__activity_queue__", queue)
        _activities[queue].add(defined)
        return cast(Callable[P, R], defined)

    return register


def workflow_defn(
    *, queue: str, **workflow_kwargs: Any
) -> Callable[[WorkflowClass], WorkflowClass]:
    """``@workflow.defn`` that also records the workflow under ``queue``.

    The workflow type defaults to the class name; the API starts jobs by that
    name (see ``JOB_WORKFLOWS``).
    """
    _require_queue(queue, "workflow_defn")

    def register(cls: WorkflowClass) -> WorkflowClass:
        defined = workflow.defn(**workflow_kwargs)(cls)
        setattr(defined, "__workflow_queue__", queue)
        _workflows[queue].add(defined)
        return cast(WorkflowClass, defined)

    return register


def autodiscover_modules(packages: list[str] | None = None) -> None:
    for package_name in packages or DEFAULT_PACKAGES:
        package = importlib.import_module(package_name)
        for module in pkgutil.walk_packages(package.__path__, f"{package_name}."):
            importlib.import_module(module.name)


def get_activities_by_queue() -> dict[str, set[Callable[..., Any]]]:
    return {queue: set(handlers) for queue, handlers in _activities.items()}


def get_workflows_by_queue() -> dict[str, set[type]]:
    return {queue: set(handlers) for queue, handlers in _workflows.items()}
