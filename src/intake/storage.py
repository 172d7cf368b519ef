"""
Flow Store - namespaced persisted key/value state for multi-step flows.

Three JSON blobs, each a flat map keyed by step, field or flow name:
- "formData":        per-step prefill values (written on every input)
- "globalFieldData": reusable field values (email, name, ...), prefill only
- "flowData":        per-flow records written by submit actions

Writes replace the whole value for a key (last writer wins). Corrupt or
missing storage reads as empty and is never raised to callers.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


PREFILL_BLOB = "formData"
GLOBAL_FIELDS_BLOB = "globalFieldData"
FLOW_BLOB = "flowData"


class StorageBackend(Protocol):
    """String key/value storage with localStorage semantics."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process backend. Used for headless runs and tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """
    Backend persisted as a single JSON file of blob-name → serialized blob.

    The file is re-read on every access so separate processes sharing a
    path see each other's writes (last writer wins).
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Storage file {self.path} unreadable, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} has unexpected shape, treating as empty")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items), encoding="utf-8")

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key in items:
            del items[key]
            self._write_all(items)


class JsonNamespace:
    """One serialized JSON blob holding a flat map of key → JSON value."""

    def __init__(self, backend: StorageBackend, blob: str):
        self.backend = backend
        self.blob = blob

    def _read(self) -> dict[str, Any]:
        raw = self.backend.get_item(self.blob)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            logger.warning(f"Corrupt '{self.blob}' storage, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"'{self.blob}' storage is not a map, treating as empty")
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.backend.set_item(self.blob, json.dumps(data))
        except (TypeError, ValueError, OSError) as e:
            logger.error(f"Failed to write '{self.blob}' storage: {e}")

    def save(self, key: str, data: Any) -> None:
        """Replace the whole value stored under key."""
        all_data = self._read()
        all_data[key] = data
        self._write(all_data)

    def load(self, key: str) -> Any | None:
        """Value under key, or None when missing or storage is corrupt."""
        return self._read().get(key)

    def clear(self, key: str) -> None:
        all_data = self._read()
        if key in all_data:
            del all_data[key]
            self._write(all_data)

    def keys(self) -> list[str]:
        return list(self._read())


class FlowStore:
    """
    Facade over the three namespaces.

    Flow records are read with load_flow(), which returns {} when missing;
    callers read-modify-write the full record through save_flow().
    """

    def __init__(self, backend: StorageBackend | None = None):
        self.backend = backend if backend is not None else MemoryStorage()
        self.prefill = JsonNamespace(self.backend, PREFILL_BLOB)
        self.global_fields = JsonNamespace(self.backend, GLOBAL_FIELDS_BLOB)
        self.flows = JsonNamespace(self.backend, FLOW_BLOB)

    # -- per-step prefill ---------------------------------------------------

    def load_prefill(self, step_name: str) -> dict[str, Any]:
        data = self.prefill.load(step_name)
        return data if isinstance(data, dict) else {}

    def save_prefill(self, step_name: str, values: dict[str, Any]) -> None:
        self.prefill.save(step_name, values)

    def clear_prefill(self, step_name: str) -> None:
        self.prefill.clear(step_name)

    # -- global reusable fields ----------------------------------------------

    def load_global_field(self, field_name: str) -> Any | None:
        return self.global_fields.load(field_name)

    def save_global_field(self, field_name: str, value: Any) -> None:
        self.global_fields.save(field_name, value)

    # -- flow records --------------------------------------------------------

    def load_flow(self, flow_name: str) -> dict[str, Any]:
        data = self.flows.load(flow_name)
        return data if isinstance(data, dict) else {}

    def save_flow(self, flow_name: str, record: dict[str, Any]) -> None:
        self.flows.save(flow_name, record)

    def clear_flow(self, flow_name: str) -> None:
        self.flows.clear(flow_name)


def create_flow_store(storage_path: str | None = None) -> FlowStore:
    """FlowStore for the configured backend (None = in-memory)."""
    if storage_path:
        return FlowStore(FileStorage(storage_path))
    return FlowStore(MemoryStorage())
