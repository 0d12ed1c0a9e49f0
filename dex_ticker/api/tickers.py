import logging
from typing import List
from fastapi import APIRouter, Body, HTTPException, Path
from dex_ticker.models import (
    BlockInput, PoolCreated, TickerOutput, RollingVolumeResponse, LatestBlockResponse
)
from dex_ticker.services import ticker_service
from dex_ticker.services.block_processor import (
    MissingBlockTimestampError, OutOfOrderBlockError
)
from dex_ticker.utils import is_valid_address
from dex_ticker.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_network(network: str) -> None:
    if network not in settings.active_networks:
        raise HTTPException(status_code=400, detail=f"Unsupported network: {network}")


@router.get("/{network}/latest-block")
async def get_latest_block_for_network(
    network: str = Path(..., description="Network name")
) -> LatestBlockResponse:
    """Get the last block processed for specific network"""
    _check_network(network)

    latest = ticker_service.get_latest_block(network)
    if latest is None:
        raise HTTPException(status_code=404, detail=f"No block processed yet on {network}")
    return latest


@router.post("/{network}/blocks")
async def process_block(
    network: str = Path(..., description="Network name"),
    block: BlockInput = Body(..., description="Block metadata and logs"),
    pools_created: List[PoolCreated] = Body(default=[], description="Pool creations to pass through")
) -> TickerOutput:
    """Process one block and return its tickers"""
    try:
        _check_network(network)
        return ticker_service.process_block(network, block, pools_created)

    except HTTPException:
        raise
    except MissingBlockTimestampError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except OutOfOrderBlockError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to process block {block.number} on {network}: {e}")
        raise HTTPException(status_code=500, detail="Failed to process block")


@router.post("/{network}/blocks/{block_number}/sync")
async def sync_block(
    network: str = Path(..., description="Network name"),
    block_number: int = Path(..., ge=0, description="Block number to fetch over RPC")
) -> TickerOutput:
    """Fetch a block from the network's RPC node and process it"""
    try:
        _check_network(network)

        output = await ticker_service.sync_block(network, block_number)
        if output is None:
            raise HTTPException(status_code=502, detail=f"Could not fetch block {block_number} from {network}")
        return output

    except HTTPException:
        raise
    except MissingBlockTimestampError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except OutOfOrderBlockError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to sync block {block_number} on {network}: {e}")
        raise HTTPException(status_code=500, detail="Failed to sync block")


@router.get("/{network}/pools/{address}/volume-24h")
async def get_rolling_volume(
    network: str = Path(..., description="Network name"),
    address: str = Path(..., description="Pool address")
) -> RollingVolumeResponse:
    """Get a pool's trailing 24h volume in raw token units"""
    _check_network(network)

    if not is_valid_address(address):
        raise HTTPException(status_code=400, detail="Invalid address format")

    return ticker_service.get_rolling_volume(network, address)
