import logging
import os

# JSON-RPC endpoint - defaults to a public Ethereum node, override via RPC_ENDPOINT
RPC_ENDPOINT = os.environ.get('RPC_ENDPOINT', 'https://ethereum-rpc.publicnode.com')
RPC_TIMEOUT = float(os.environ.get('RPC_TIMEOUT', '10'))

# Roughly one Ethereum slot
POLL_INTERVAL = float(os.environ.get('POLL_INTERVAL', '12'))

HTTP_HOST = os.environ.get('HTTP_HOST', '0.0.0.0')
HTTP_PORT = int(os.environ.get('HTTP_PORT', '8080'))

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


def get_log_level(name: str = None) -> int:
    """Resolve a level name like 'DEBUG' to its logging constant, falling back to INFO."""
    return getattr(logging, (name or LOG_LEVEL).upper(), logging.INFO)


def get_log_level_name(name: str = None) -> str:
    """Lower-case level name for servers that take names (uvicorn), e.g. 'warning'."""
    level_name = logging.getLevelName(get_log_level(name)).lower()
    if level_name not in ('critical', 'error', 'warning', 'info', 'debug'):
        return 'info'
    return level_name
