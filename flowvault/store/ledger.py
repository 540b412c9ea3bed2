"""Persisted per-account balances."""

from flowvault.store.base import KeyValueStore


class LedgerStore:
    """Mapping from account to non-negative integer balance (default zero)."""

    def __init__(self, store: KeyValueStore, prefix: str = "vault") -> None:
        self._store = store
        self._namespace = f"{prefix}:balances"

    def balance_of(self, account: str) -> int:
        return int(self._store.get(self._namespace, account, 0))

    def set_balance(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Balance of {account} cannot be negative")
        self._store.put(self._namespace, account, amount)

    def balances(self) -> dict[str, int]:
        """Return every account that ever held a balance, zeros included."""
        return {account: int(value) for account, value in self._store.items(self._namespace)}

    def total(self) -> int:
        return sum(self.balances().values())
