"""
Chain data model

Transactions are immutable once decoded. Blocks are transient: fetched,
filtered, discarded.

Addresses are compared lower-cased everywhere. Anything that accepts an
address from the outside (RPC payloads, HTTP requests, storage calls) runs
it through normalize_address() first, otherwise a subscription for
'0xABC...' would never match a transaction to '0xabc...'.
"""

from dataclasses import dataclass, field
from typing import List, Optional


def normalize_address(address: Optional[str]) -> str:
    """Lower-case and strip an address. None (contract creation 'to') becomes ''."""
    if not address:
        return ''
    return address.strip().lower()


def parse_quantity(value: str) -> int:
    """
    Decode a JSON-RPC hex quantity like '0x10d4f'.

    Raises ValueError on empty or malformed input.
    """
    if not value or not isinstance(value, str):
        raise ValueError(f'expected a hex quantity string, got {value!r}')
    if not value.lower().startswith('0x'):
        raise ValueError(f'quantity {value!r} is not 0x-prefixed')
    return int(value, 16)


@dataclass(frozen=True)
class Transaction:
    """Address-to-address transfer as seen in a full block"""
    from_address: str
    to_address: str
    value: str  # Raw quantity string (wei), hex as returned by the node
    hash: str

    @classmethod
    def from_rpc(cls, data: dict) -> 'Transaction':
        return cls(
            from_address=normalize_address(data.get('from')),
            to_address=normalize_address(data.get('to')),
            value=data.get('value') or '0x0',
            hash=data.get('hash') or '',
        )

    def to_dict(self) -> dict:
        return {
            'from': self.from_address,
            'to': self.to_address,
            'value': self.value,
            'hash': self.hash,
        }


@dataclass
class Block:
    """A block's transactions at a given height"""
    number: int
    transactions: List[Transaction] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, number: int, data: dict) -> 'Block':
        txs = []
        for raw in data.get('transactions') or []:
            # hashesOnly responses are plain strings; we always ask for full txs
            if isinstance(raw, dict):
                txs.append(Transaction.from_rpc(raw))
        return cls(number=number, transactions=txs)
