# betdesk/services/saga.py
# ------------------------------------------------------------
# Ordered steps with compensations. When a step raises, the
# compensations of the steps that already completed run in reverse
# and a SagaError names the failing step.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..errors import BetdeskError, SagaError

logger = logging.getLogger(__name__)


@dataclass
class Step:
    name: str
    action: Callable[[dict], Any]
    compensate: Optional[Callable[[dict], None]] = None
    failure: Optional[str] = None  # message prefix when this step fails


@dataclass
class Saga:
    name: str
    steps: list = field(default_factory=list)

    def step(self, name: str, action, compensate=None, failure: str | None = None) -> "Saga":
        self.steps.append(Step(name, action, compensate, failure))
        return self

    def run(self, ctx: dict | None = None) -> dict:
        """Run every step; each action's return value is stored as ctx[step.name].

        A failure in the first step has nothing to undo and propagates
        unchanged. Later failures unwind and raise SagaError.
        """
        ctx = {} if ctx is None else ctx
        done: list[Step] = []
        for s in self.steps:
            try:
                ctx[s.name] = s.action(ctx)
            except Exception as e:
                if not done:
                    raise
                logger.error(f"[saga] {self.name}: step '{s.name}' failed: {e}")
                compensated = self._unwind(done, ctx)
                message = e.message if isinstance(e, BetdeskError) else str(e)
                if s.failure:
                    message = f"{s.failure}: {message}"
                raise SagaError(message, step=s.name, compensated=compensated) from e
            done.append(s)
        return ctx

    def _unwind(self, done: list[Step], ctx: dict) -> bool:
        ok = True
        for s in reversed(done):
            if s.compensate is None:
                continue
            try:
                s.compensate(ctx)
                logger.info(f"[saga] {self.name}: compensated '{s.name}'")
            except Exception as e:
                ok = False
                logger.error(f"[saga] {self.name}: compensation for '{s.name}' failed: {e}")
        return ok
