import logging
from typing import List, Mapping, Optional, Sequence
from dex_ticker.models import (
    PoolBlockAggregate, DecodedPoolCreated, DexInfo, PoolCreated, PoolTicker,
    TickerOutput, TokenSide
)
from dex_ticker.services.rolling_volumes import RollingVolumeStore
from dex_ticker.utils import format_decimal, sqrt_price_to_price

logger = logging.getLogger(__name__)


class TickerOutputAssembler:
    """Joins block aggregates, rolling totals and pool creations into the block output"""

    def __init__(self, rolling_volumes: RollingVolumeStore):
        self.rolling_volumes = rolling_volumes

    def build_ticker(self, aggregate: PoolBlockAggregate, block_number: int,
                     timestamp: int) -> PoolTicker:
        pool_id = aggregate.pool_id
        return PoolTicker(
            pool_address=pool_id,
            block_volume_token0=format_decimal(aggregate.volume_token0),
            block_volume_token1=format_decimal(aggregate.volume_token1),
            swap_count=aggregate.swap_count,
            price=format_decimal(sqrt_price_to_price(aggregate.last_sqrt_price_x96)),
            sqrt_price_x96=str(aggregate.last_sqrt_price_x96),
            volume_24h_token0=format_decimal(self.rolling_volumes.total(pool_id, TokenSide.TOKEN0)),
            volume_24h_token1=format_decimal(self.rolling_volumes.total(pool_id, TokenSide.TOKEN1)),
            block_number=block_number,
            timestamp=timestamp
        )

    @staticmethod
    def build_pool_created(pool: DecodedPoolCreated, block_number: int) -> PoolCreated:
        return PoolCreated(
            pool_address=pool.pool_id,
            token0=pool.token0,
            token1=pool.token1,
            fee=pool.fee,
            block_number=block_number,
            transaction_hash=pool.transaction_hash
        )

    def assemble(self, pools: Mapping[str, PoolBlockAggregate], block_number: int, timestamp: int,
                 pools_created: Sequence[DecodedPoolCreated] = (),
                 passthrough_pools: Sequence[PoolCreated] = (),
                 dex_info: Optional[DexInfo] = None) -> TickerOutput:
        """
        Build the block output. Rolling totals must already include this block.
        Ticker order follows the aggregation map and carries no meaning.
        """
        tickers: List[PoolTicker] = [
            self.build_ticker(aggregate, block_number, timestamp) for aggregate in pools.values()
        ]

        created: List[PoolCreated] = [
            self.build_pool_created(pool, block_number) for pool in pools_created
        ]
        created.extend(passthrough_pools)

        logger.info(
            f"Block {block_number}: {len(tickers)} tickers, {len(created)} pools created"
        )
        return TickerOutput(dex_info=dex_info, pools_created=created, tickers=tickers)
