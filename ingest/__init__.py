"""
Block ingestion for the transaction parser.

Components:
- InMemoryStorage: subscriptions, per-address transaction log, block cursor
- TransactionPoller: walks new blocks and records subscribed transactions
- PollerRunner: runs the poller in a background thread

Usage:
    from chain import JsonRpcClient
    from ingest import InMemoryStorage, TransactionPoller, PollerRunner

    storage = InMemoryStorage()
    storage.subscribe('0x...')

    poller = TransactionPoller(JsonRpcClient(), storage, storage, storage)
    runner = PollerRunner(poller)
    runner.start()
"""

from ingest.storage import InMemoryStorage, ReadWriteLock
from ingest.poller import DEFAULT_POLL_INTERVAL, PollerRunner, TransactionPoller

__all__ = [
    # State
    'InMemoryStorage',
    'ReadWriteLock',

    # Ingestion
    'TransactionPoller',
    'PollerRunner',
    'DEFAULT_POLL_INTERVAL',
]
