from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from typing import TypeVar

from relsync.core.result import Err, Ok, Result
from relsync.release.errors import ReleaseError

S = TypeVar("S")

StepHandler = Callable[[S], Result[S, ReleaseError]]
GetStep = Callable[[S], str]
OnTransition = Callable[[S, S], None]


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
    terminal: Collection[str],
    on_transition: OnTransition[S] | None = None,
) -> Result[S, ReleaseError]:
    """Drive ``initial_state`` through ``handlers`` until a terminal step.

    Each handler maps the session to the next session. A handler error stops
    the machine and is returned as is; side effects already performed by
    earlier handlers are kept.
    """
    current = initial_state

    while True:
        step = get_step(current)
        if step in terminal:
            return Ok(current)

        handler = handlers.get(step)
        if handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"unknown reconciliation step: {step}",
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if on_transition is not None:
            on_transition(current, outcome.value)
        current = outcome.value
