import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Response
from pydantic import BaseModel

from chain.models import normalize_address
from ingest.poller import TransactionPoller
from ingest.storage import InMemoryStorage
from query_api.deps import get_poller, get_storage


api_logger = logging.getLogger('tx_parser.api')

router = APIRouter(tags=["parser"])


class SubscribeResponse(BaseModel):
    address: str
    subscribed: bool


class CurrentBlockResponse(BaseModel):
    current_block: int


@router.post("/address/{address}/subscribe", response_model=SubscribeResponse)
def subscribe(address: str, storage: InMemoryStorage = Depends(get_storage)) -> SubscribeResponse:
    address = normalize_address(address)
    api_logger.info(json.dumps({'event': 'subscribe', 'address': address}))

    try:
        storage.subscribe(address)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        api_logger.error(json.dumps({
            'event': 'subscribe_failed',
            'address': address,
            'error': str(exc),
        }))
        raise HTTPException(status_code=500, detail="Failed to subscribe") from exc

    return SubscribeResponse(address=address, subscribed=True)


# No paging: the whole log for the address is returned
@router.get("/transactions")
def get_transactions(address: str = Query(""), storage: InMemoryStorage = Depends(get_storage)):
    try:
        txs = storage.get_transactions(address)
    except Exception as exc:
        api_logger.error(json.dumps({
            'event': 'get_transactions_failed',
            'address': address,
            'error': str(exc),
        }))
        raise HTTPException(status_code=500, detail="Failed to load transactions") from exc

    if not txs:
        return Response(status_code=204)
    return [tx.to_dict() for tx in txs]


@router.get("/current_block", response_model=CurrentBlockResponse)
def get_current_block(storage: InMemoryStorage = Depends(get_storage)) -> CurrentBlockResponse:
    try:
        block = storage.get_current_block()
    except Exception as exc:
        api_logger.error(json.dumps({'event': 'get_current_block_failed', 'error': str(exc)}))
        raise HTTPException(status_code=500, detail="Failed to load current block") from exc
    return CurrentBlockResponse(current_block=block)


@router.get("/status")
def status(storage: InMemoryStorage = Depends(get_storage),
           poller: Optional[TransactionPoller] = Depends(get_poller)):
    return {
        'storage': storage.get_stats(),
        'poller': poller.get_stats() if poller else None,
    }


def create_app(storage: InMemoryStorage, poller: Optional[TransactionPoller] = None) -> FastAPI:
    """Build the API around an existing storage (and optionally the poller feeding it)."""
    app = FastAPI(title="Ethereum Transaction Parser")
    app.state.storage = storage
    app.state.poller = poller
    app.include_router(router)
    return app
