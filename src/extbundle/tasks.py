"""Fan-out/fan-in helper used by the per-module build phases.

:func:`run_tasks` runs one callable per module on a thread pool and waits
for every task to settle. Each module owns a disjoint output directory, so
no locking is needed between tasks. There is no cancellation: a failing or
slow module never stops its siblings.

Outcomes are sorted into three buckets on :class:`TaskResults`:

* ``succeeded`` -- the callable returned a value.
* ``skipped`` -- the callable raised :class:`~extbundle.exceptions.ModuleSkipped`.
* ``failed`` -- the callable raised another
  :class:`~extbundle.exceptions.ExtbundleError` or an :class:`OSError`.

Anything else is a bug and propagates out of the phase.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, Optional, TypeVar

from extbundle.exceptions import ExtbundleError, ModuleSkipped
from extbundle.output import error, info

T = TypeVar("T")


@dataclass
class TaskFailure:
    """A module whose task raised a handled error."""

    key: str
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class TaskResults(Generic[T]):
    """Joined outcome of a fan-out, keyed by module id."""

    succeeded: dict[str, T] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    failed: list[TaskFailure] = field(default_factory=list)

    @property
    def failed_keys(self) -> list[str]:
        return [f.key for f in self.failed]


def run_tasks(
    keys: Iterable[str],
    fn: Callable[[str], T],
    max_workers: Optional[int] = None,
) -> TaskResults[T]:
    """Run ``fn(key)`` for every key concurrently and wait for all of them.

    Args:
        keys: Module ids to process. Duplicates are processed once.
        fn: Per-module callable. Raise
            :class:`~extbundle.exceptions.ModuleSkipped` to skip a module.
        max_workers: Thread pool size. ``None`` uses the executor default.

    Returns:
        A :class:`TaskResults` whose buckets list keys in input order.
    """
    ordered = list(dict.fromkeys(keys))
    results: TaskResults[T] = TaskResults()
    if not ordered:
        return results

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {key: pool.submit(fn, key) for key in ordered}

    for key in ordered:
        try:
            results.succeeded[key] = futures[key].result()
        except ModuleSkipped as exc:
            info(f"[{key}] {exc}, skipping")
            results.skipped.append(key)
        except (ExtbundleError, OSError) as exc:
            error(f"[{key}] {exc}")
            results.failed.append(TaskFailure(key=key, error=exc))

    return results
