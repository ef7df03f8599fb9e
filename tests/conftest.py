import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from chain.models import Block, Transaction
from ingest.storage import InMemoryStorage


class FakeChainClient:
    """Chain double: serves blocks from a dict, can be told to fail."""

    def __init__(self, latest=0, blocks=None):
        self.latest = latest
        self.blocks = blocks or {}
        self.fail_latest = False
        self.fail_heights = set()
        self.requested = []

    def get_latest_block_number(self):
        if self.fail_latest:
            raise ConnectionError("node unreachable")
        return self.latest

    def get_block_by_number(self, height):
        self.requested.append(height)
        if height in self.fail_heights:
            raise ConnectionError(f"failed to load block {height}")
        return self.blocks.get(height, Block(number=height))


def make_tx(from_address, to_address, tx_hash, value="0x1"):
    return Transaction(from_address=from_address, to_address=to_address, value=value, hash=tx_hash)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def chain():
    return FakeChainClient()
