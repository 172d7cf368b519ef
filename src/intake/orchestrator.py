"""
Step Orchestrator - lifecycle of one step.

    UNINITIALIZED → LOADED → BOUND → SUBMITTING → SUBMIT_ERROR | SUCCESS

The orchestrator keeps the canonical model (current/initial values and
per-field state). The StepView is the rendered surface; at submit time its
values are read as the authoritative input. Only one submit may be in
flight per step; inputs and the submit control are disabled meanwhile.
"""

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from .errors import SubmitError, SubmitErrorKind, message_for
from .sanitize import sanitize_field
from .schema import StepSchema
from .storage import FlowStore
from .validation import (
    FieldResult,
    FieldState,
    has_empty_required,
    is_submit_ready,
    validate_field,
    validate_full,
)
from .view import Document, StepView

logger = logging.getLogger(__name__)


class StepStatus(Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    BOUND = "bound"
    SUBMITTING = "submitting"
    SUBMIT_ERROR = "submit_error"
    SUCCESS = "success"


@dataclass
class SubmitOutcome:
    """What happened to one submit attempt."""
    ok: bool
    result: Any = None
    error_code: str | None = None
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    global_error: str | None = None
    # Re-entrant submit, missing view, or a response for a step that was re-initialized
    ignored: bool = False


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def error_code_for(exc: Exception) -> str:
    """Stable code for any exception raised by a submit action."""
    if isinstance(exc, SubmitError):
        return exc.code
    if isinstance(exc, httpx.TimeoutException):
        return SubmitErrorKind.API_TIMEOUT.value
    if isinstance(exc, httpx.TransportError):
        return SubmitErrorKind.NETWORK_ERROR.value
    return SubmitErrorKind.DEFAULT.value


class StepOrchestrator:
    """Owns one step: prefill, input handling, submit enablement and submission."""

    def __init__(self, schema: StepSchema, store: FlowStore, document: Document):
        self.schema = schema
        self.store = store
        self.document = document
        self.view: StepView | None = None
        self.status = StepStatus.UNINITIALIZED
        self.current_form_data: dict[str, str] = {}
        self.initial_form_data: dict[str, str] = {}
        self.field_states: dict[str, FieldState] = {}
        # Bumped on every init/teardown; responses from an older generation are dropped
        self._generation = 0

    @property
    def name(self) -> str:
        return self.schema.name

    # =========================================================================
    # Init
    # =========================================================================

    def init(self, schema: StepSchema | None = None) -> bool:
        """
        Load persisted values into the step and bind its listeners.

        Returns False (and binds nothing) when the step's root element is
        not on the page.
        """
        if schema is not None:
            self.schema = schema
        self._generation += 1
        logger.info(f"Init step: {self.schema.name} (selector: {self.schema.selector})")

        view = self.document.query(self.schema.selector)
        if view is None:
            logger.error(f"Step root {self.schema.selector} not found, skipping init of {self.schema.name}")
            self.view = None
            self.status = StepStatus.UNINITIALIZED
            return False

        if self.view is not None:
            self.view.unbind_all()
        view.unbind_all()
        self.view = view

        step_prefill = self._load_step_prefill()

        self.current_form_data = {}
        for name, field_schema in self.schema.fields.items():
            if name in step_prefill:
                raw = step_prefill[name]
            else:
                raw = None
                if field_schema.persist == "global":
                    raw = self.store.load_global_field(name)
                if raw is None:
                    raw = field_schema.default or ""
            self.current_form_data[name] = sanitize_field(raw, field_schema)

        self.initial_form_data = dict(self.current_form_data)
        self.field_states = {name: FieldState() for name in self.schema.fields}
        self.status = StepStatus.LOADED

        view.clear_field_errors()
        view.clear_global_error()
        view.set_busy(False)
        view.set_inputs_enabled(True)
        for name, value in self.current_form_data.items():
            if not view.has_field(name):
                logger.warning(f"Field '{name}' not found in step {self.schema.name}")
                continue
            view.set_value(name, value)
            view.bind_input(name, self._handle_input_event)
        view.bind_submit(self.submit)
        self.status = StepStatus.BOUND

        self.update_submit_state()
        logger.debug(f"Step {self.schema.name} loaded with {self.current_form_data}")
        return True

    def _load_step_prefill(self) -> dict[str, Any]:
        """Per-step prefill, pruned to fields that still persist per step."""
        saved = self.store.load_prefill(self.schema.name)
        kept = {
            name: value
            for name, value in saved.items()
            if name in self.schema.fields and self.schema.fields[name].persist == "form"
        }
        if len(kept) != len(saved):
            removed = sorted(set(saved) - set(kept))
            logger.info(f"Dropping non-persisting prefill keys for {self.schema.name}: {removed}")
            self.store.save_prefill(self.schema.name, kept)
        return kept

    def teardown(self) -> None:
        """Detach listeners and forget field state. Persisted values stay."""
        self._generation += 1
        if self.view is not None:
            self.view.unbind_all()
        self.field_states = {}
        self.status = StepStatus.UNINITIALIZED

    # =========================================================================
    # Input
    # =========================================================================

    def _handle_input_event(self, field_name: str, raw_value: Any) -> None:
        self.on_input(field_name, raw_value)

    def on_input(self, field_name: str, raw_value: Any) -> FieldResult | None:
        """Sanitize, validate and persist one field change."""
        field_schema = self.schema.fields.get(field_name)
        if field_schema is None:
            logger.warning(f"No field '{field_name}' in step {self.schema.name}")
            return None
        if self.status == StepStatus.SUBMITTING:
            logger.debug(f"Input on '{field_name}' ignored during submit")
            return None

        state = self.field_states.setdefault(field_name, FieldState())
        state.is_touched = True

        clean = sanitize_field(raw_value, field_schema)
        if self.view is not None and clean != ("" if raw_value is None else str(raw_value)):
            self.view.set_value(field_name, clean)

        self.current_form_data[field_name] = clean
        state.is_dirty = clean != self.initial_form_data.get(field_name, "")

        result = validate_field(clean, field_schema, state)
        if self.view is not None:
            self.view.clear_field_errors(field_name)
            if not result.is_valid:
                self.view.show_field_errors(field_name, result.error_messages)
                logger.debug(f"Validation error in '{field_name}': {result.error_messages}")

        self._persist_field(field_name)
        self.update_submit_state()
        return result

    def _persist_field(self, field_name: str) -> None:
        persist = self.schema.fields[field_name].persist
        if persist == "global":
            self.store.save_global_field(field_name, self.current_form_data[field_name])
        elif persist == "form":
            self.store.save_prefill(
                self.schema.name,
                {
                    name: self.current_form_data.get(name, "")
                    for name, f in self.schema.fields.items()
                    if f.persist == "form"
                },
            )

    def update_submit_state(self) -> bool:
        """Enable the submit control iff the whole step validates."""
        ready = is_submit_ready(self.current_form_data, self.schema)
        if self.view is not None:
            self.view.set_submit_enabled(ready)
        return ready

    # =========================================================================
    # Submit
    # =========================================================================

    async def submit(self) -> SubmitOutcome:
        """Run the submit pipeline: validate, action, then onSuccess."""
        if self.view is None or self.status == StepStatus.UNINITIALIZED:
            logger.warning(f"Submit on uninitialized step {self.schema.name}")
            return SubmitOutcome(ok=False, ignored=True)
        if self.status == StepStatus.SUBMITTING:
            logger.warning(f"Submit already in flight for {self.schema.name}")
            return SubmitOutcome(ok=False, ignored=True)

        view = self.view
        generation = self._generation
        self.status = StepStatus.SUBMITTING

        view.clear_field_errors()
        view.clear_global_error()
        view.set_busy(True)
        view.set_inputs_enabled(False)
        view.set_submit_enabled(False)

        # Rendered values are authoritative at submit time
        rendered = view.read_values()
        data = {
            name: sanitize_field(rendered.get(name, self.current_form_data.get(name, "")), f)
            for name, f in self.schema.fields.items()
        }
        self.current_form_data.update(data)
        for state in self.field_states.values():
            state.is_touched = True

        validation = await validate_full(data, self.schema)
        if generation != self._generation:
            return self._stale()

        if not validation.is_valid:
            for name, messages in validation.field_errors.items():
                view.show_field_errors(name, messages)
            if validation.global_errors:
                global_message = " ".join(validation.global_errors)
            elif has_empty_required(data, self.schema):
                global_message = message_for(SubmitErrorKind.REQUIRED_FIELDS_MISSING, self.schema.global_messages)
            else:
                global_message = message_for(SubmitErrorKind.DEFAULT_INVALID_SUBMIT, self.schema.global_messages)
            view.show_global_error(global_message)
            logger.warning(f"Submit of {self.schema.name} blocked by validation: {validation.field_errors}")
            self._rearm(StepStatus.SUBMIT_ERROR)
            return SubmitOutcome(
                ok=False,
                error_code=SubmitErrorKind.VALIDATION_FAILED.value,
                field_errors=validation.field_errors,
                global_error=global_message,
            )

        submit = self.schema.submit
        try:
            result = await submit.action(dict(data)) if submit is not None else None
            if generation != self._generation:
                return self._stale()
            self._rearm(StepStatus.SUCCESS)
            if submit is not None and submit.on_success is not None:
                await _maybe_await(submit.on_success(result))
            return SubmitOutcome(ok=True, result=result)
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Dropping error from stale submit of {self.schema.name}: {e}")
                return SubmitOutcome(ok=False, error_code=error_code_for(e), ignored=True)
            return await self._handle_submit_error(e)

    async def _handle_submit_error(self, exc: Exception) -> SubmitOutcome:
        code = error_code_for(exc)
        if isinstance(exc, SubmitError):
            logger.error(f"Submit of {self.schema.name} failed: {code} {exc.detail}")
        else:
            logger.exception(f"Submit of {self.schema.name} raised unexpectedly: {exc}")

        self._rearm(StepStatus.SUBMIT_ERROR)
        submit = self.schema.submit
        if submit is not None and submit.on_error is not None:
            try:
                await _maybe_await(submit.on_error(exc))
                return SubmitOutcome(ok=False, error_code=code)
            except Exception as hook_error:
                logger.exception(f"on_error hook of {self.schema.name} raised: {hook_error}")
                code = SubmitErrorKind.DEFAULT.value

        message = message_for(code, self.schema.global_messages)
        field_errors: dict[str, list[str]] = {}
        if self.view is not None:
            self.view.show_global_error(message)
            if isinstance(exc, SubmitError) and exc.field:
                field_errors[exc.field] = [message]
                self.view.show_field_errors(exc.field, [message])
        return SubmitOutcome(ok=False, error_code=code, field_errors=field_errors, global_error=message)

    def _rearm(self, status: StepStatus) -> None:
        self.status = status
        if self.view is not None:
            self.view.set_busy(False)
            self.view.set_inputs_enabled(True)
        self.update_submit_state()

    def _stale(self) -> SubmitOutcome:
        logger.info(f"Ignoring stale submit response for {self.schema.name}")
        return SubmitOutcome(ok=False, ignored=True)
