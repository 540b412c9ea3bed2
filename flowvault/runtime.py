"""Execution context shared by the vault, the engine and the staking adapter."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from flowvault.audit import AuditLog, PendingEvent
from flowvault.clock import Clock, SystemClock
from flowvault.exceptions import StoreError
from flowvault.store.base import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


class Runtime:
    """Serializes mutating calls and makes each one all-or-nothing.

    Every component wired into the same runtime shares its store, clock,
    audit log and writer lock. A call that enters :meth:`transaction` while
    another transaction is open on the same thread (the engine calling the
    vault) joins it, so a failure anywhere unwinds the whole outer call.

    Calls to external rails (treasury, delegation backend) are made inside
    the transaction as its last steps, so a failing rail aborts the call
    along with its store writes and buffered events.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Clock | None = None,
        audit_log: AuditLog | None = None,
    ) -> None:
        self.store = store or InMemoryKeyValueStore()
        self.clock = clock or SystemClock()
        self.audit_log = audit_log or AuditLog()
        self._lock = threading.RLock()
        self._depth = 0
        self._pending: list[PendingEvent] = []
        self._tx_time: int | None = None

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction is open on this runtime."""
        with self._lock:
            return self._depth > 0

    def now(self) -> int:
        """Current scheduling time; frozen for the duration of a transaction.

        Other threads wait for an open transaction to finish and then read
        the clock, never the frozen time of someone else's call.
        """
        with self._lock:
            if self._tx_time is not None:
                return self._tx_time
            return self.clock.now()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed block as one atomic, serialized operation."""
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self.store.begin()
                self._pending = []
                self._tx_time = self.clock.now()
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._abort()
                raise
            self._depth -= 1
            if outermost:
                pending, self._pending = self._pending, []
                self._tx_time = None
                self.store.commit()
                self.audit_log.publish(pending)

    def _abort(self) -> None:
        discarded = len(self._pending)
        self._pending = []
        self._tx_time = None
        try:
            self.store.rollback()
        except StoreError:
            # The caller sees the error that aborted the call, not this one
            logger.exception("Rollback failed after an aborted call")
            return
        logger.debug("Transaction rolled back, %d events discarded", discarded)

    @contextmanager
    def snapshot(self) -> Iterator[None]:
        """Hold the writer lock for a consistent read."""
        with self._lock:
            yield

    def emit(self, source: str, subject: Any, event: Any) -> None:
        """Buffer an audit event until the enclosing transaction commits."""
        with self._lock:
            if self._depth == 0:
                raise RuntimeError("Events can only be emitted inside a transaction")
            self._pending.append(
                PendingEvent(
                    source=source, subject=str(subject), emitted_at=self.now(), event=event
                )
            )
