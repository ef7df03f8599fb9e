"""
Transaction Poller - Block Ingestion Loop

Walks the chain forward from the stored cursor and records every transaction
that touches a subscribed address.

Pass (ingest_once):
1. Ask the node for the latest height L
2. Read the cursor C (0 means "never ran": start at L - 1, newest block only)
3. For each height in (C, L], in order:
   - fetch the block; on failure stop the pass here
   - record each tx under its 'to' and then its 'from' address if subscribed
   - move the cursor to this height

Failure policy:
    latest height / cursor read fails   -> log, pass does nothing
    block fetch fails                   -> log, pass stops; next pass resumes
                                           at the same height
    subscription lookup / append fails  -> log, that address is skipped
    cursor write fails                  -> log, keep going

Known gap: a failed cursor write means the block can be walked again on the
next pass, and its matches appended a second time. Transactions are not
deduplicated by hash.

Usage:
    poller = TransactionPoller(client, storage, storage, storage)
    runner = PollerRunner(poller)
    runner.start()
    # ... later ...
    runner.stop()
"""

import json
import logging
import threading
import time
from typing import Optional

from chain.models import Block, Transaction


poller_logger = logging.getLogger('tx_parser.poller')

DEFAULT_POLL_INTERVAL = 12.0


class TransactionPoller:
    """
    Orchestrates ingestion over injected capabilities. Owns no chain state.

    Capabilities (duck-typed, so tests can hand in doubles):
        chain_client:  get_latest_block_number() -> int
                       get_block_by_number(height) -> Block
        subscriptions: is_subscribed(address) -> bool
        transactions:  append_transaction(address, tx)
        cursor:        get_cursor() -> int, set_cursor(height)

    The last three are normally the same InMemoryStorage.
    """

    def __init__(self, chain_client, subscriptions, transactions, cursor,
                 poll_interval: float = DEFAULT_POLL_INTERVAL):
        self.chain_client = chain_client
        self.subscriptions = subscriptions
        self.transactions = transactions
        self.cursor = cursor
        self.poll_interval = poll_interval

        self.lock = threading.Lock()

        # Stats
        self.passes_total = 0
        self.blocks_processed = 0
        self.transactions_matched = 0
        self.fetch_failures = 0
        self.cursor_failures = 0
        self.record_failures = 0
        self.last_block: Optional[int] = None
        self.last_pass_ts = 0.0

    def ingest_once(self) -> int:
        """
        Run one ingestion pass.

        Returns the number of blocks fully walked. Never raises.
        """
        with self.lock:
            self.passes_total += 1
            self.last_pass_ts = time.time()

        try:
            latest = self.chain_client.get_latest_block_number()
        except Exception as e:
            self._count('fetch_failures')
            poller_logger.error(json.dumps({
                'event': 'latest_block_failed',
                'error': str(e),
            }))
            return 0

        try:
            current = self.cursor.get_cursor()
        except Exception as e:
            poller_logger.error(json.dumps({
                'event': 'cursor_read_failed',
                'error': str(e),
            }))
            return 0

        # Cold start: only the newest block, no history. At genesis (latest == 0)
        # the cursor stays 0, so every pass refetches block 0 until the chain moves.
        if current == 0:
            current = latest - 1

        processed = 0
        for height in range(current + 1, latest + 1):
            try:
                block = self.chain_client.get_block_by_number(height)
            except Exception as e:
                self._count('fetch_failures')
                poller_logger.error(json.dumps({
                    'event': 'block_fetch_failed',
                    'block': hex(height),
                    'error': str(e),
                }))
                # Cursor stays below this height so the next pass retries it
                return processed

            matched = self._process_block(block)
            poller_logger.info(json.dumps({
                'event': 'block_processed',
                'block': hex(height),
                'transactions': len(block.transactions),
                'matched': matched,
            }))

            try:
                self.cursor.set_cursor(height)
            except Exception as e:
                # Not fatal; the block may be reprocessed (and duplicated) later
                self._count('cursor_failures')
                poller_logger.error(json.dumps({
                    'event': 'cursor_write_failed',
                    'block': hex(height),
                    'error': str(e),
                }))

            processed += 1
            with self.lock:
                self.blocks_processed += 1
                self.last_block = height

        return processed

    def _process_block(self, block: Block) -> int:
        matched = 0
        for tx in block.transactions:
            if self._record_if_subscribed(tx, tx.to_address):
                matched += 1
            if self._record_if_subscribed(tx, tx.from_address):
                matched += 1
        return matched

    def _record_if_subscribed(self, tx: Transaction, address: str) -> bool:
        """
        Append tx to address's log if the address is watched.

        Each side of a transfer goes through here separately, so a failure on
        one side never drops the other.
        """
        try:
            subscribed = self.subscriptions.is_subscribed(address)
        except Exception as e:
            self._count('record_failures')
            poller_logger.error(json.dumps({
                'event': 'subscription_check_failed',
                'address': address,
                'error': str(e),
            }))
            return False

        if not subscribed:
            return False

        try:
            self.transactions.append_transaction(address, tx)
        except Exception as e:
            self._count('record_failures')
            poller_logger.error(json.dumps({
                'event': 'transaction_save_failed',
                'address': address,
                'tx_hash': tx.hash,
                'error': str(e),
            }))
            return False

        self._count('transactions_matched')
        poller_logger.debug(json.dumps({
            'event': 'transaction_saved',
            'address': address,
            'tx_hash': tx.hash,
        }))
        return True

    def run_forever(self, stop_event: threading.Event):
        """
        Poll until stop_event is set.

        First pass runs immediately, then one per poll_interval (fixed rate;
        a pass that overruns the period just starts the next one right away).
        The event is only checked between passes - a pass in flight finishes.
        """
        next_run = time.monotonic()

        while not stop_event.is_set():
            try:
                self.ingest_once()
            except Exception as e:
                poller_logger.error(json.dumps({
                    'event': 'poll_error',
                    'error': str(e),
                }))

            next_run += self.poll_interval
            now = time.monotonic()
            if next_run < now:
                next_run = now

            # Wakes early on stop
            stop_event.wait(next_run - now)

        poller_logger.info(json.dumps({'event': 'poller_stopped'}))

    def _count(self, name: str):
        with self.lock:
            setattr(self, name, getattr(self, name) + 1)

    def get_stats(self) -> dict:
        with self.lock:
            return {
                'passes_total': self.passes_total,
                'blocks_processed': self.blocks_processed,
                'transactions_matched': self.transactions_matched,
                'fetch_failures': self.fetch_failures,
                'cursor_failures': self.cursor_failures,
                'record_failures': self.record_failures,
                'last_block': self.last_block,
                'last_pass_ts': self.last_pass_ts,
                'poll_interval': self.poll_interval,
            }


class PollerRunner:
    """
    Background thread that runs the poller on its schedule.

    Usage:
        runner = PollerRunner(poller)
        runner.start()
        # ... later ...
        runner.stop()
    """

    def __init__(self, poller: TransactionPoller):
        self.poller = poller
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the background polling thread"""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.poller.run_forever,
            args=(self._stop_event,),
            name='tx-poller',
            daemon=True,
        )
        self._thread.start()
        poller_logger.info(json.dumps({
            'event': 'poller_started',
            'poll_interval': self.poller.poll_interval,
        }))

    def stop(self, timeout: float = 5.0) -> bool:
        """
        Signal the loop to exit and wait for it.

        Returns False if a pass was still in flight when the timeout ran out;
        the daemon thread then finishes that pass and exits on its own.
        """
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
        return not self.is_running
