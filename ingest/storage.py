"""
In-Memory Parser Storage

Holds the three pieces of shared state:
1. Subscription set - addresses whose transactions are kept
2. Transaction log - per-address list, in discovery (block) order
3. Block cursor - last height whose transactions were fully recorded

Written by the poller (log, cursor) and the query API (subscriptions),
read by both. Each structure has its own reader/writer lock; nothing ever
needs two of them at once, so there is no lock ordering to get wrong.

Nothing is persisted. A restart starts from an empty set and cursor 0.

Usage:
    from ingest.storage import InMemoryStorage

    storage = InMemoryStorage()
    storage.subscribe('0xABC...')
    storage.is_subscribed('0xabc...')      # True
    storage.get_transactions('0xabc...')   # [] until the poller finds some
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, List, Set

from chain.models import Transaction, normalize_address


class ReadWriteLock:
    """
    Many readers or one writer.

    Writers get preference: once a writer is waiting, new readers block,
    so a steady stream of API reads cannot starve the poller.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class InMemoryStorage:
    """
    Thread-safe storage for subscriptions, matched transactions and the cursor.

    Construct one and hand the same instance to the poller and the API.
    """

    def __init__(self):
        self._subscriptions: Set[str] = set()
        self._subscriptions_lock = ReadWriteLock()

        # {address: [Transaction, ...]}
        self._transactions: Dict[str, List[Transaction]] = defaultdict(list)
        self._transactions_lock = ReadWriteLock()

        # 0 = nothing processed yet
        self._cursor = 0
        self._cursor_lock = ReadWriteLock()

    # Subscriptions

    def subscribe(self, address: str):
        """Add an address to the watch set. Subscribing twice is a no-op."""
        address = normalize_address(address)
        if not address:
            raise ValueError('address must not be empty')

        with self._subscriptions_lock.write_locked():
            self._subscriptions.add(address)

    def is_subscribed(self, address: str) -> bool:
        address = normalize_address(address)
        if not address:
            return False

        with self._subscriptions_lock.read_locked():
            return address in self._subscriptions

    # Transaction log

    def append_transaction(self, address: str, tx: Transaction):
        """Append to the end of the address's log. No dedup, no reordering."""
        address = normalize_address(address)
        with self._transactions_lock.write_locked():
            self._transactions[address].append(tx)

    def get_transactions(self, address: str) -> List[Transaction]:
        """Snapshot of the address's log in append order ([] if none)"""
        address = normalize_address(address)
        with self._transactions_lock.read_locked():
            # .get so reads never create empty entries in the defaultdict
            return list(self._transactions.get(address, ()))

    # Cursor

    def get_cursor(self) -> int:
        with self._cursor_lock.read_locked():
            return self._cursor

    def set_cursor(self, height: int):
        """
        Store the last fully processed height.

        Ordering is the poller's job; an older height is accepted as-is.
        """
        with self._cursor_lock.write_locked():
            self._cursor = height

    # Query-surface names

    def get_current_block(self) -> int:
        return self.get_cursor()

    def get_stats(self) -> dict:
        with self._subscriptions_lock.read_locked():
            subscriptions = len(self._subscriptions)

        with self._transactions_lock.read_locked():
            addresses_with_txs = len(self._transactions)
            stored_entries = sum(len(txs) for txs in self._transactions.values())

        return {
            'subscriptions': subscriptions,
            'addresses_with_transactions': addresses_with_txs,
            'stored_entries': stored_entries,
            'current_block': self.get_cursor(),
        }
