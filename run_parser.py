#!/usr/bin/env python3
"""
Ethereum Transaction Parser - Main Runner

Wires the system together:
1. In-memory storage (subscriptions, transaction log, block cursor)
2. JSON-RPC chain client
3. Background poller walking new blocks every poll interval
4. HTTP query API (subscribe / transactions / current_block)

Usage:
    python run_parser.py --rpc-endpoint https://ethereum-rpc.publicnode.com --port 8080
    python run_parser.py --subscribe 0xabc... --subscribe 0xdef...

State lives in memory only; a restart begins again at the chain tip.
"""

import argparse
import json
import logging
import os
import sys

import uvicorn

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from chain import JsonRpcClient
from ingest import InMemoryStorage, PollerRunner, TransactionPoller
from parser_utils.config import (
    HTTP_HOST, HTTP_PORT, LOG_LEVEL, POLL_INTERVAL, RPC_ENDPOINT, RPC_TIMEOUT, get_log_level,
    get_log_level_name,
)
from query_api import create_app


logger = logging.getLogger('tx_parser')


def main():
    parser = argparse.ArgumentParser(description='Ethereum Transaction Parser')
    parser.add_argument('--rpc-endpoint', default=RPC_ENDPOINT,
                        help='Ethereum JSON-RPC endpoint')
    parser.add_argument('--rpc-timeout', type=float, default=RPC_TIMEOUT,
                        help='Per-request timeout in seconds')
    parser.add_argument('--poll-interval', type=float, default=POLL_INTERVAL,
                        help='Seconds between ingestion passes')
    parser.add_argument('--host', default=HTTP_HOST, help='API bind host')
    parser.add_argument('--port', type=int, default=HTTP_PORT, help='API bind port')
    parser.add_argument('--log-level', default=LOG_LEVEL, help='DEBUG, INFO, WARNING, ...')
    parser.add_argument('--subscribe', action='append', default=[], metavar='ADDRESS',
                        help='Address to watch from startup (repeatable)')

    args = parser.parse_args()

    logging.basicConfig(
        level=get_log_level(args.log_level),
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
    )

    logger.info(json.dumps({
        'event': 'starting',
        'rpc_endpoint': args.rpc_endpoint,
        'poll_interval': args.poll_interval,
        'host': args.host,
        'port': args.port,
    }))

    storage = InMemoryStorage()
    for address in args.subscribe:
        storage.subscribe(address)

    client = JsonRpcClient(args.rpc_endpoint, timeout=args.rpc_timeout)
    poller = TransactionPoller(client, storage, storage, storage, poll_interval=args.poll_interval)
    runner = PollerRunner(poller)
    runner.start()

    app = create_app(storage, poller=poller)

    try:
        # Blocks until Ctrl+C / SIGTERM
        uvicorn.run(app, host=args.host, port=args.port, log_level=get_log_level_name(args.log_level))
    finally:
        logger.info(json.dumps({'event': 'shutting_down'}))
        if not runner.stop():
            logger.warning(json.dumps({'event': 'poller_still_running'}))
        client.close()
        logger.info(json.dumps({'event': 'exited', 'stats': poller.get_stats()}))


if __name__ == '__main__':
    main()
