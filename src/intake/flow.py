"""
Flow Controller - ordered steps of one named flow.

Steps advance only through a step's onSuccess (advance()). Going back
re-runs init on the previous step so derived values are recomputed from
the store instead of reused from stale view state.
"""

import logging
from typing import Any

from .orchestrator import StepOrchestrator
from .schema import StepSchema, get_schema
from .storage import FlowStore
from .view import Document

logger = logging.getLogger(__name__)


class FlowController:
    def __init__(self, flow_name: str, store: FlowStore, document: Document):
        self.flow_name = flow_name
        self.store = store
        self.document = document
        self.steps: list[StepOrchestrator] = []
        self.index: int | None = None
        self.completed = False

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, schema: StepSchema | str) -> StepOrchestrator:
        """Append a step. Accepts a StepSchema or a registered schema name."""
        if isinstance(schema, str):
            resolved = get_schema(schema)
            if resolved is None:
                raise KeyError(f"Unknown step schema: {schema}")
            schema = resolved
        orchestrator = StepOrchestrator(schema, self.store, self.document)
        self.steps.append(orchestrator)
        return orchestrator

    def step(self, name: str) -> StepOrchestrator | None:
        for orchestrator in self.steps:
            if orchestrator.name == name:
                return orchestrator
        return None

    @property
    def current(self) -> StepOrchestrator | None:
        if self.index is None:
            return None
        return self.steps[self.index]

    # =========================================================================
    # Navigation
    # =========================================================================

    def start(self, index: int = 0) -> bool:
        if not self.steps:
            logger.error(f"Flow {self.flow_name} has no steps")
            return False
        self.completed = False
        return self._show(index)

    def advance(self, result: Any = None) -> bool:
        """Standard onSuccess: move to the next step, or mark the flow complete."""
        if self.index is None:
            return self.start()
        next_index = self.index + 1
        if next_index >= len(self.steps):
            logger.info(f"Flow {self.flow_name} completed")
            self.completed = True
            return False
        return self._show(next_index)

    def back(self) -> bool:
        if self.index is None or self.index == 0:
            logger.debug(f"No previous step in {self.flow_name}")
            return False
        return self._show(self.index - 1)

    def _show(self, index: int) -> bool:
        target = self.steps[index]
        previous = self.current

        if not target.init():
            logger.error(f"Cannot show step {target.name} in flow {self.flow_name}")
            return False

        if previous is not None and previous is not target:
            previous.teardown()
            if previous.view is not None:
                previous.view.set_visible(False)
        if target.view is not None:
            target.view.set_visible(True)

        self.index = index
        logger.info(f"Flow {self.flow_name}: step {index + 1}/{len(self.steps)} ({target.name})")
        return True

    # =========================================================================
    # Flow record
    # =========================================================================

    @property
    def record(self) -> dict[str, Any]:
        return self.store.load_flow(self.flow_name)

    def update_record(self, values: dict[str, Any]) -> dict[str, Any]:
        """Read-modify-write of the whole flow record."""
        record = self.store.load_flow(self.flow_name)
        record.update(values)
        self.store.save_flow(self.flow_name, record)
        return record

    def clear(self) -> None:
        """Forget the flow record and every step's prefill."""
        self.store.clear_flow(self.flow_name)
        for orchestrator in self.steps:
            self.store.clear_prefill(orchestrator.name)
        logger.info(f"Flow {self.flow_name} cleared")
