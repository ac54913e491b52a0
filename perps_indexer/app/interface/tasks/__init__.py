from __future__ import annotations

from collections.abc import Awaitable, Callable

from .backfill_confirmed_events_task import backfill_confirmed_events_task
from .poll_pending_events_task import poll_pending_events_task
from .run_indexer_loop_task import run_indexer_loop_task
from .show_head_pointer_task import show_head_pointer_task

TaskFn = Callable[..., Awaitable[object]]

TASKS: dict[str, TaskFn] = {
    "backfill_confirmed_events_task": backfill_confirmed_events_task,
    "poll_pending_events_task": poll_pending_events_task,
    "run_indexer_loop_task": run_indexer_loop_task,
    "show_head_pointer_task": show_head_pointer_task,
}
