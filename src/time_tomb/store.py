"""Observable state shared by the Time Tomb client components."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import ReadError
from .types import (
    ContractSnapshot,
    CountdownDisplay,
    Notice,
    ReadResult,
    TransactionKind,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    SNAPSHOT_UPDATED = "snapshot_updated"
    READ_FAILED = "read_failed"
    LOADING_CHANGED = "loading_changed"
    TRANSACTION_UPDATED = "transaction_updated"
    CELEBRATION_CHANGED = "celebration_changed"
    COUNTDOWN_TICK = "countdown_tick"
    ACTION_CHANGED = "action_changed"
    NOTICE = "notice"


@dataclass(frozen=True)
class StoreEvent:
    type: EventType
    payload: Any = None


Listener = Callable[[StoreEvent], None]


class StateStore:
    """Single owner of the snapshot and transaction records.

    Mutations happen on the event loop only; every mutation publishes an
    event to the listeners registered for its type.
    """

    def __init__(self) -> None:
        self._snapshot = ContractSnapshot.empty()
        self._applied_sequence = 0
        self._has_snapshot = False
        self._read_error: ReadError | None = None
        self._failed_fields: frozenset[str] = frozenset()
        self._loading = False
        self._records: dict[TransactionKind, TransactionRecord] = {}
        self._celebrating = False
        self._countdown = CountdownDisplay.closed()
        self._listeners: list[tuple[Listener, frozenset[EventType] | None]] = []

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------
    def subscribe(
        self, listener: Listener, types: Iterable[EventType] | None = None
    ) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""

        entry = (listener, frozenset(types) if types is not None else None)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def publish(self, event_type: EventType, payload: Any = None) -> None:
        event = StoreEvent(event_type, payload)
        for listener, types in list(self._listeners):
            if types is not None and event_type not in types:
                continue
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed while handling %s", event_type.value)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> ContractSnapshot:
        return self._snapshot

    @property
    def has_snapshot(self) -> bool:
        return self._has_snapshot

    @property
    def applied_sequence(self) -> int:
        return self._applied_sequence

    @property
    def read_error(self) -> ReadError | None:
        return self._read_error

    @property
    def failed_fields(self) -> frozenset[str]:
        return self._failed_fields

    def apply_read(self, result: ReadResult) -> bool:
        """Apply a read unless a newer one was already applied."""

        if result.sequence <= self._applied_sequence:
            logger.debug(
                "Discarding stale read #%s (applied #%s)",
                result.sequence,
                self._applied_sequence,
            )
            return False

        self._applied_sequence = result.sequence
        self._snapshot = result.snapshot
        self._has_snapshot = True
        self._failed_fields = result.failed_fields
        self._read_error = (
            ReadError(
                "Some contract fields could not be refreshed",
                sequence=result.sequence,
                failed_fields=result.failed_fields,
            )
            if result.is_partial
            else None
        )
        self.publish(EventType.SNAPSHOT_UPDATED, result.snapshot)
        if self._read_error is not None:
            self.publish(EventType.READ_FAILED, self._read_error)
        return True

    def record_read_error(self, error: ReadError) -> bool:
        """Remember a failed read; the last good snapshot stays in place."""

        if error.sequence is not None and error.sequence <= self._applied_sequence:
            logger.debug("Ignoring failure of superseded read #%s", error.sequence)
            return False
        self._read_error = error
        self._failed_fields = error.failed_fields
        self.publish(EventType.READ_FAILED, error)
        return True

    @property
    def is_loading(self) -> bool:
        return self._loading

    def set_loading(self, loading: bool) -> None:
        if loading == self._loading:
            return
        self._loading = loading
        self.publish(EventType.LOADING_CHANGED, loading)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @property
    def records(self) -> dict[TransactionKind, TransactionRecord]:
        return dict(self._records)

    def get_record(self, kind: TransactionKind) -> TransactionRecord | None:
        return self._records.get(kind)

    def put_record(self, record: TransactionRecord) -> None:
        self._records[record.kind] = record
        self.publish(EventType.TRANSACTION_UPDATED, record)

    def clear_record(self, kind: TransactionKind) -> TransactionRecord | None:
        record = self._records.pop(kind, None)
        if record is not None:
            self.publish(EventType.TRANSACTION_UPDATED, record)
        return record

    # ------------------------------------------------------------------
    # Presentation signals
    # ------------------------------------------------------------------
    @property
    def celebrating(self) -> bool:
        return self._celebrating

    def set_celebrating(self, celebrating: bool) -> None:
        if celebrating == self._celebrating:
            return
        self._celebrating = celebrating
        self.publish(EventType.CELEBRATION_CHANGED, celebrating)

    @property
    def countdown(self) -> CountdownDisplay:
        return self._countdown

    def set_countdown(self, display: CountdownDisplay) -> None:
        self._countdown = display
        self.publish(EventType.COUNTDOWN_TICK, display)

    def notify(self, notice: Notice) -> None:
        self.publish(EventType.NOTICE, notice)
