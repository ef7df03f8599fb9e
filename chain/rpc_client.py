"""
Ethereum JSON-RPC Client

Minimal chain access for the ingestion poller:
- Latest block height (eth_blockNumber)
- Full block contents (eth_getBlockByNumber with full transactions)

Every failure (transport, HTTP status, bad JSON, RPC error object, malformed
quantity) surfaces as ChainClientError. The poller treats them all the same
way: log, abort the pass, retry on the next tick.

Usage:
    from chain.rpc_client import JsonRpcClient

    client = JsonRpcClient('https://ethereum-rpc.publicnode.com')
    latest = client.get_latest_block_number()
    block = client.get_block_by_number(latest)
"""

import json
import logging
import random
from typing import Any, List, Optional

import requests

from chain.models import Block, parse_quantity
from parser_utils.config import RPC_ENDPOINT, RPC_TIMEOUT


rpc_logger = logging.getLogger('tx_parser.rpc')

RETURN_FULL_TRANSACTIONS = True


class ChainClientError(Exception):
    """Raised when the node cannot be reached or returns unusable data"""


class JsonRpcClient:
    """
    JSON-RPC 2.0 client over a shared requests.Session.

    No retries here: the poller's schedule is the retry mechanism.
    """

    def __init__(self, endpoint: str = None, timeout: float = None,
                 session: Optional[requests.Session] = None):
        self.endpoint = endpoint or RPC_ENDPOINT
        self.timeout = timeout if timeout is not None else RPC_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make JSON-RPC call and return the 'result' member"""
        payload = {
            'jsonrpc': '2.0',
            'id': random.randint(1, 2 ** 31 - 1),
            'method': method,
            'params': params,
        }

        try:
            response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ChainClientError(f'{method} request failed: {e}') from e

        try:
            body = response.json()
        except ValueError as e:
            raise ChainClientError(f'failed to decode {method} response: {e}') from e

        if not isinstance(body, dict):
            raise ChainClientError(f'unexpected {method} response: {body!r}')

        if body.get('error'):
            raise ChainClientError(f'{method} rpc error: {json.dumps(body["error"])}')

        return body.get('result')

    def get_latest_block_number(self) -> int:
        """Get the current chain height"""
        result = self._rpc_call('eth_blockNumber', [])
        if not result:
            raise ChainClientError('got empty block number')

        try:
            return parse_quantity(result)
        except (TypeError, ValueError) as e:
            raise ChainClientError(f'failed to parse block number {result!r}: {e}') from e

    def get_block_by_number(self, height: int) -> Block:
        """Fetch a block with full transaction objects"""
        result = self._rpc_call('eth_getBlockByNumber', [hex(height), RETURN_FULL_TRANSACTIONS])

        # Node hasn't seen this height yet (or pruned it)
        if result is None:
            raise ChainClientError(f'block {hex(height)} not available')
        if not isinstance(result, dict):
            raise ChainClientError(f'unexpected block payload for {hex(height)}: {result!r}')

        block = Block.from_rpc(height, result)
        rpc_logger.debug(json.dumps({
            'event': 'block_fetched',
            'block': hex(height),
            'transactions': len(block.transactions),
        }))
        return block

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
