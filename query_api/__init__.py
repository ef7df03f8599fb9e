"""
HTTP query surface over the parser storage.

Usage:
    from query_api import create_app

    app = create_app(storage, poller=poller)
    uvicorn.run(app, host='0.0.0.0', port=8080)
"""

from query_api.server import create_app

__all__ = ['create_app']
