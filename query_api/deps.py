"""Dependency helpers for the query routes."""

from typing import Optional

from fastapi import Request

from ingest.poller import TransactionPoller
from ingest.storage import InMemoryStorage


def get_storage(request: Request) -> InMemoryStorage:
    """Return the storage instance the app was built with."""
    return request.app.state.storage


def get_poller(request: Request) -> Optional[TransactionPoller]:
    return getattr(request.app.state, 'poller', None)


__all__ = ['get_storage', 'get_poller']
