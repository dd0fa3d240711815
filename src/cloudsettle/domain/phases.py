"""Sequential, state-gated mutation phases against one composite object."""

from __future__ import annotations

from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from .errors import MutationError, ProhibitedStateError
from .waiting import StateWaiter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .ports.remote import MutationInvoker
    from .waiting import WaitSpec

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Phase[L: Hashable]:
    """One optional step of a composite update.

    ``applies`` is evaluated against the label observed right before the phase,
    which is the label left behind by the previous phase.
    """

    name: str
    applies: Callable[[L], bool]
    mutate: MutationInvoker
    wait: WaitSpec[Any, L]
    mandatory: bool = True


@dataclass(slots=True)
class PhaseOrchestrator:
    waiter: StateWaiter = field(default_factory=StateWaiter)

    def run[L: Hashable](
        self,
        object_id: str,
        phases: Sequence[Phase[L]],
        *,
        read_label: Callable[[], L],
        initial_label: L | None = None,
    ) -> list[str]:
        """Run each applicable phase to completion, strictly in order.

        Returns the names of the phases that ran. A failed mutation or wait stops
        the sequence; completed phases are not rolled back. Pass ``initial_label``
        when the caller has just read the object and a second read is redundant.
        """

        completed: list[str] = []
        label = read_label() if initial_label is None else initial_label
        for index, phase in enumerate(phases):
            if not phase.applies(label):
                if phase.mandatory:
                    raise ProhibitedStateError(
                        object_id=object_id, operation=phase.name, label=label
                    )
                log.debug("Skipping phase %s on %s (status %s)", phase.name, object_id, label)
                continue

            log.info("Running phase %s on %s (status %s)", phase.name, object_id, label)
            try:
                phase.mutate()
            except Exception as exc:
                raise MutationError(object_id=object_id, operation=phase.name, cause=exc) from exc
            self.waiter.wait(phase.wait)
            completed.append(phase.name)

            if index < len(phases) - 1:
                label = read_label()

        return completed


__all__ = ["Phase", "PhaseOrchestrator"]
