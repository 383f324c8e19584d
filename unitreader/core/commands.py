"""Command objects for mutations that write to the store before memory."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from unitreader.core.errors import RemoteFailure


logger = logging.getLogger(__name__)


@dataclass
class Step:
    """One remote write, with an optional undo receiving the write's result."""
    run: Callable[[], Any]
    undo: Optional[Callable[[Any], None]] = None


@dataclass
class Mutation:
    """
    A mutating operation: validate, persist, then apply locally.

    Steps run in order. When one raises RemoteFailure, the completed steps
    are undone in reverse order and the failure is re-raised; ``apply`` is
    only called once every step succeeded, so memory is never touched on
    failure. If an undo fails as well the store is left half-written: the
    error is re-raised with ``partial=True`` after calling ``on_partial``.
    """
    name: str
    steps: list[Step]
    apply: Callable[[list], None]
    validate: Optional[Callable[[], None]] = None
    on_partial: Optional[Callable[[], None]] = None
    _done: list = field(default_factory=list, init=False, repr=False)

    def execute(self) -> list:
        """Run the mutation. Returns the results of every step."""
        if self.validate:
            self.validate()

        self._done = []
        for step in self.steps:
            try:
                result = step.run()
            except RemoteFailure as e:
                logger.warning("%s failed: %s", self.name, e)
                self._rollback(e)
                raise
            self._done.append((step, result))

        results = [result for _, result in self._done]
        self.apply(results)
        logger.debug("%s applied", self.name)
        return results

    def _rollback(self, cause: RemoteFailure) -> None:
        for step, result in reversed(self._done):
            if step.undo is None:
                continue
            try:
                step.undo(result)
            except RemoteFailure as e:
                logger.error("%s left partially applied: undo failed: %s", self.name, e)
                if self.on_partial:
                    self.on_partial()
                raise RemoteFailure(
                    f"{self.name} failed and could not be undone: {cause}",
                    partial=True,
                ) from e
