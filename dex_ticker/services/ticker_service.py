import logging
from pathlib import Path
from typing import Dict, Optional, Sequence
from dex_ticker.config import settings
from dex_ticker.models import (
    BlockInput, PoolCreated, TickerOutput, TokenSide,
    RollingVolumeResponse, LatestBlockResponse
)
from dex_ticker.services.block_processor import BlockProcessor
from dex_ticker.services.store import FileKeyValueStore, InMemoryKeyValueStore
from dex_ticker.services.web3_service import web3_manager
from dex_ticker.utils import format_decimal, normalize_address

logger = logging.getLogger(__name__)


class TickerService:
    """Keeps one block processor, with its own stores, per network"""

    def __init__(self):
        self._processors: Dict[str, BlockProcessor] = {}

    def _create_processor(self, network: str) -> BlockProcessor:
        if settings.state_dir:
            state_dir = Path(settings.state_dir)
            period_store = FileKeyValueStore(state_dir / f"{network}-period_volumes.json")
            rolling_store = FileKeyValueStore(state_dir / f"{network}-rolling_volumes.json")
        else:
            period_store = InMemoryKeyValueStore(f"{network}-period_volumes")
            rolling_store = InMemoryKeyValueStore(f"{network}-rolling_volumes")

        logger.info(f"Created block processor for {network}")
        return BlockProcessor(network, period_store, rolling_store)

    def get_processor(self, network: str) -> BlockProcessor:
        if network not in self._processors:
            self._processors[network] = self._create_processor(network)
        return self._processors[network]

    def reset(self, network: Optional[str] = None) -> None:
        """Drop processors (and in-memory state) for one network or all of them"""
        if network is None:
            self._processors.clear()
        else:
            self._processors.pop(network, None)

    def process_block(self, network: str, block: BlockInput,
                      passthrough_pools: Sequence[PoolCreated] = ()) -> TickerOutput:
        return self.get_processor(network).process_block(block, passthrough_pools)

    async def sync_block(self, network: str, block_number: int) -> Optional[TickerOutput]:
        """
        Pull a block over RPC, process it and fill in decimals of new pools.
        Processing itself never awaits, so blocks of one network still run one at a time.
        """
        block = await web3_manager.get_block_input(network, block_number)
        if block is None:
            return None

        output = self.process_block(network, block)
        for pool in output.pools_created:
            pool.token0_decimals = await web3_manager.get_token_decimals(network, pool.token0)
            pool.token1_decimals = await web3_manager.get_token_decimals(network, pool.token1)
        return output

    def get_rolling_volume(self, network: str, pool_address: str) -> RollingVolumeResponse:
        """Trailing 24h volume of a pool as of the last processed block"""
        processor = self.get_processor(network)
        pool_id = normalize_address(pool_address)
        period = processor.current_period()

        if period is None:
            volume0 = volume1 = 0
            period = 0
        else:
            rolling = processor.rolling_volumes
            volume0 = rolling.total_at(pool_id, TokenSide.TOKEN0, period)
            volume1 = rolling.total_at(pool_id, TokenSide.TOKEN1, period)

        return RollingVolumeResponse(
            pool_address=pool_id,
            period=period,
            volume_24h_token0=format_decimal(volume0),
            volume_24h_token1=format_decimal(volume1)
        )

    def get_latest_block(self, network: str) -> Optional[LatestBlockResponse]:
        processor = self.get_processor(network)
        if processor.last_block_number is None:
            return None
        return LatestBlockResponse(
            network=network,
            block_number=processor.last_block_number,
            timestamp=processor.last_block_timestamp
        )


# Global ticker service
ticker_service = TickerService()
