"""Sequential named-step driver for multi-call provisioning runs."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Iterator, Sequence, TypeVar

from capi.errors import ProvisioningError


@dataclass
class WorkflowState:
    history: list[str] = field(default_factory=list)


S = TypeVar("S", bound=WorkflowState)


@dataclass(frozen=True)
class Step(Generic[S]):
    name: Enum
    run: Callable[[S], S]
    # Failures from here on leave a mutated stack behind.
    after_stack_mutation: bool = False


ErrorHandler = Callable[["Step[S]", S, BaseException], None]


def run_steps(
    steps: Sequence[Step[S]],
    state: S,
    *,
    failure_types: tuple[type[BaseException], ...],
    on_error: ErrorHandler | None = None,
) -> S:
    """Run ``steps`` in order, threading ``state`` through each one.

    A failure stops the run: ``on_error`` sees the failing step and the state as
    it was when the step started, then a ``ProvisioningError`` is raised.
    """
    for step in steps:
        state.history.append(step.name.value)
        try:
            state = step.run(state)
        except failure_types as exc:
            if on_error is not None:
                on_error(step, state, exc)
            raise ProvisioningError(
                f"{step.name.value} failed: {exc}",
                step=step.name.value,
                cause=exc,
            ) from exc
    return state


@contextmanager
def progress_dots(stream, *, interval: float = 5.0) -> Iterator[None]:
    """Write ``...`` then one ``.`` per ``interval`` seconds until the block exits."""
    stop = threading.Event()

    def _tick() -> None:
        while not stop.wait(interval):
            stream.write(".")
            stream.flush()

    stream.write("...")
    stream.flush()
    ticker = threading.Thread(target=_tick, name="capi-progress", daemon=True)
    ticker.start()
    try:
        yield
    finally:
        stop.set()
        ticker.join()
        stream.write("\n")
        stream.flush()
