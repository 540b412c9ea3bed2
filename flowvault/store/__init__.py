"""Storage backends and the ledger/rule stores built on them."""

from flowvault.store.base import InMemoryKeyValueStore, KeyValueStore
from flowvault.store.ledger import LedgerStore
from flowvault.store.rules import RuleStore

__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "LedgerStore", "RuleStore"]
