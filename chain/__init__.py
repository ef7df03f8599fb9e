"""
Chain access for the transaction parser.

Components:
- JsonRpcClient: eth_blockNumber / eth_getBlockByNumber over HTTP
- Transaction, Block: decoded chain data
- normalize_address: the one address-normalization policy (lower-case)

Usage:
    from chain import JsonRpcClient

    client = JsonRpcClient()
    block = client.get_block_by_number(client.get_latest_block_number())
    for tx in block.transactions:
        print(tx.hash, tx.from_address, tx.to_address)
"""

from chain.models import Block, Transaction, normalize_address, parse_quantity
from chain.rpc_client import ChainClientError, JsonRpcClient

__all__ = [
    # Data model
    'Block',
    'Transaction',
    'normalize_address',
    'parse_quantity',

    # JSON-RPC
    'ChainClientError',
    'JsonRpcClient',
]
