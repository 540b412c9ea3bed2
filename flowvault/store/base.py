"""Key-value storage interface and in-memory backend."""

import copy
import logging
from collections.abc import Iterator
from typing import Any

from flowvault.exceptions import StoreError

logger = logging.getLogger(__name__)

_MISSING = object()


class KeyValueStore:
    """Namespaced key-value store with a single open transaction at a time.

    Values must be JSON-compatible (dicts, lists, str, int, bool, None) so
    that every backend can persist them. Writes made between :meth:`begin`
    and :meth:`rollback` are discarded; :meth:`commit` makes them durable.
    """

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def put(self, namespace: str, key: str, value: Any) -> None:
        raise NotImplementedError

    def items(self, namespace: str) -> Iterator[tuple[str, Any]]:
        raise NotImplementedError

    def begin(self) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def rollback(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with an undo journal for rollback.

    Values are deep-copied on the way in and out, so callers can never
    mutate stored state without going through :meth:`put`.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._journal: list[tuple[str, str, Any]] | None = None

    @property
    def in_transaction(self) -> bool:
        return self._journal is not None

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        value = self._data.get(namespace, {}).get(key, _MISSING)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def put(self, namespace: str, key: str, value: Any) -> None:
        bucket = self._data.setdefault(namespace, {})
        if self._journal is not None:
            self._journal.append((namespace, key, bucket.get(key, _MISSING)))
        bucket[key] = copy.deepcopy(value)

    def items(self, namespace: str) -> Iterator[tuple[str, Any]]:
        snapshot = list(self._data.get(namespace, {}).items())
        for key, value in snapshot:
            yield key, copy.deepcopy(value)

    def begin(self) -> None:
        if self._journal is not None:
            raise StoreError("A transaction is already open")
        self._journal = []

    def commit(self) -> None:
        if self._journal is None:
            raise StoreError("No open transaction to commit")
        self._journal = None

    def rollback(self) -> None:
        if self._journal is None:
            raise StoreError("No open transaction to roll back")
        journal, self._journal = self._journal, None
        for namespace, key, previous in reversed(journal):
            bucket = self._data[namespace]
            if previous is _MISSING:
                bucket.pop(key, None)
            else:
                bucket[key] = previous
        logger.debug("Rolled back %d writes", len(journal))
