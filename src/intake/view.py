"""
Rendering collaborator interface and a headless implementation.

The orchestrator owns the canonical in-memory model; a StepView is only the
rendered surface plus an input channel. HeadlessDocument/HeadlessStepView
stand in for a real page when running without a browser (CLI, tests, API).
"""

import logging
from typing import Any, Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)


InputHandler = Callable[[str, Any], None]
SubmitHandler = Callable[[], Awaitable[Any]]


class StepView(Protocol):
    """What the orchestrator needs from a step's rendered root element."""

    def has_field(self, name: str) -> bool: ...

    def read_values(self) -> dict[str, str]: ...

    def set_value(self, name: str, value: str) -> None: ...

    def show_field_errors(self, name: str, messages: list[str]) -> None: ...

    def clear_field_errors(self, name: str | None = None) -> None: ...

    def show_global_error(self, message: str) -> None: ...

    def clear_global_error(self) -> None: ...

    def set_submit_enabled(self, enabled: bool) -> None: ...

    def set_busy(self, busy: bool) -> None: ...

    def set_inputs_enabled(self, enabled: bool) -> None: ...

    def set_visible(self, visible: bool) -> None: ...

    def bind_input(self, name: str, handler: InputHandler) -> None: ...

    def bind_submit(self, handler: SubmitHandler) -> None: ...

    def unbind_all(self) -> None: ...


class Document(Protocol):
    def query(self, selector: str) -> StepView | None: ...


class HeadlessStepView:
    """In-memory step surface. Field values are plain strings."""

    def __init__(self, field_names: list[str], values: dict[str, str] | None = None):
        self.values: dict[str, str] = {name: "" for name in field_names}
        self.values.update(values or {})
        self.field_errors: dict[str, list[str]] = {}
        self.global_error: str | None = None
        self.submit_enabled = False
        self.busy = False
        self.inputs_enabled = True
        self.visible = False
        self._input_handlers: dict[str, InputHandler] = {}
        self._submit_handler: SubmitHandler | None = None

    # -- StepView ------------------------------------------------------------

    def has_field(self, name: str) -> bool:
        return name in self.values

    def read_values(self) -> dict[str, str]:
        return dict(self.values)

    def set_value(self, name: str, value: str) -> None:
        if name in self.values:
            self.values[name] = value

    def show_field_errors(self, name: str, messages: list[str]) -> None:
        self.field_errors[name] = list(messages)

    def clear_field_errors(self, name: str | None = None) -> None:
        if name is None:
            self.field_errors.clear()
        else:
            self.field_errors.pop(name, None)

    def show_global_error(self, message: str) -> None:
        self.global_error = message

    def clear_global_error(self) -> None:
        self.global_error = None

    def set_submit_enabled(self, enabled: bool) -> None:
        self.submit_enabled = enabled

    def set_busy(self, busy: bool) -> None:
        self.busy = busy

    def set_inputs_enabled(self, enabled: bool) -> None:
        self.inputs_enabled = enabled

    def set_visible(self, visible: bool) -> None:
        self.visible = visible

    def bind_input(self, name: str, handler: InputHandler) -> None:
        self._input_handlers[name] = handler

    def bind_submit(self, handler: SubmitHandler) -> None:
        self._submit_handler = handler

    def unbind_all(self) -> None:
        self._input_handlers.clear()
        self._submit_handler = None

    # -- user simulation -----------------------------------------------------

    @property
    def listener_count(self) -> int:
        return len(self._input_handlers) + (1 if self._submit_handler else 0)

    def type_into(self, name: str, raw_value: Any) -> None:
        """Put a raw value in a field and fire its input listener."""
        if not self.inputs_enabled:
            logger.debug(f"Input on '{name}' ignored while inputs are disabled")
            return
        self.values[name] = "" if raw_value is None else str(raw_value)
        handler = self._input_handlers.get(name)
        if handler is not None:
            handler(name, raw_value)

    async def press_submit(self) -> Any:
        if self._submit_handler is None:
            logger.debug("Submit pressed without a bound handler")
            return None
        return await self._submit_handler()


class HeadlessDocument:
    """Selector → HeadlessStepView registry."""

    def __init__(self):
        self._views: dict[str, HeadlessStepView] = {}

    def add_step(self, selector: str, field_names: list[str], values: dict[str, str] | None = None) -> HeadlessStepView:
        view = HeadlessStepView(field_names, values)
        self._views[selector] = view
        return view

    def query(self, selector: str) -> HeadlessStepView | None:
        return self._views.get(selector)
