"""Collect-all fan-out: run labelled coroutines concurrently, never short-circuit.

Each task yields a TaskOutcome (value or error). One failing task never
cancels or hides the results of its siblings.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger


@dataclass(frozen=True)
class TaskOutcome:
    label: str
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_outcomes(
    tasks: Sequence[tuple[str, Awaitable[Any]]], *, log_tag: str = "FANOUT"
) -> list[TaskOutcome]:
    """Await every ``(label, awaitable)`` and return one outcome per task, in input order.

    Labels are for logging only and need not be unique. Failures are logged
    as warnings. CancelledError of the caller still propagates; a task that
    was itself cancelled is reported as a failure.
    """
    labels = [label for label, _ in tasks]
    results = await asyncio.gather(*(task for _, task in tasks), return_exceptions=True)

    outcomes: list[TaskOutcome] = []
    for label, result in zip(labels, results):
        if isinstance(result, BaseException):
            logger.warning(f"[{log_tag}] {label} failed: {type(result).__name__}: {result}")
            outcomes.append(TaskOutcome(label=label, error=result))
        else:
            outcomes.append(TaskOutcome(label=label, value=result))
    return outcomes


def flatten_lists(outcomes: list[TaskOutcome]) -> list:
    """Concatenate list values of successful outcomes; failures contribute nothing."""
    flat: list = []
    for outcome in outcomes:
        if outcome.ok and outcome.value:
            flat.extend(outcome.value)
    return flat
