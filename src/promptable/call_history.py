"""Per-step ledger of recorded calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from promptable.models.call_record import CallRecord


logger = logging.getLogger(__name__)


class CallHistoryError(RuntimeError):
    """Raised when a call record is patched outside the record-then-patch protocol."""


@dataclass(frozen=True)
class CallHandle:
    """Opaque reference to one appended call record."""

    index: int


class CallHistory:
    """
    Ordered log of call records owned by a single step.

    Records are only ever appended or patched in place; the history is never
    truncated or reordered.
    """

    def __init__(self, owner: str = "") -> None:
        self._owner = owner
        self._records: list[CallRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CallRecord]:
        return iter(list(self._records))

    def __getitem__(self, index: int) -> CallRecord:
        return self._records[index]

    @property
    def last(self) -> CallRecord | None:
        if not self._records:
            return None
        return self._records[-1]

    def append(self, fields: Mapping[str, Any]) -> CallHandle:
        record = CallRecord(**dict(fields))
        self._records.append(record)
        logger.debug("Recorded call: %s at step %s", record.snapshot(), self._owner)
        return CallHandle(len(self._records) - 1)

    def update(self, fields: Mapping[str, Any], handle: CallHandle | None = None) -> CallRecord:
        if not self._records:
            raise CallHistoryError(f"Cannot update call at step {self._owner!r}: no calls recorded.")
        if handle is None:
            index = len(self._records) - 1
        elif 0 <= handle.index < len(self._records):
            index = handle.index
        else:
            raise CallHistoryError(f"Unknown call handle {handle!r} at step {self._owner!r}.")
        record = self._records[index].model_copy(update=dict(fields))
        self._records[index] = record
        logger.debug("Recorded call: %s at step %s", record.snapshot(), self._owner)
        return record

    def snapshot(self) -> list[dict[str, Any]]:
        return [record.snapshot() for record in self._records]
