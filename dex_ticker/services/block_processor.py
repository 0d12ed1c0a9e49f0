import logging
from typing import Optional, Sequence
from dex_ticker.config import settings
from dex_ticker.models import BlockInput, DexInfo, PoolCreated, TickerOutput
from dex_ticker.services.block_aggregator import aggregate_block
from dex_ticker.services.period_volumes import PeriodVolumeStore
from dex_ticker.services.rolling_volumes import RollingVolumeStore
from dex_ticker.services.store import KeyValueStore, InMemoryKeyValueStore, block_transaction
from dex_ticker.services.ticker_output import TickerOutputAssembler

logger = logging.getLogger(__name__)

# Progress markers kept next to the rolling totals; pool keys always start with 0x
LAST_BLOCK_NUMBER_KEY = "block:number"
LAST_BLOCK_TIMESTAMP_KEY = "block:timestamp"


class BlockProcessingError(Exception):
    """The whole block failed; none of its store writes were committed"""


class MissingBlockTimestampError(BlockProcessingError):
    pass


class OutOfOrderBlockError(BlockProcessingError):
    pass


class BlockProcessor:
    """Runs blocks of one network through aggregation, the volume stores and ticker output"""

    def __init__(self, network: str,
                 period_store: Optional[KeyValueStore] = None,
                 rolling_store: Optional[KeyValueStore] = None,
                 bucket_duration: int = settings.bucket_duration_seconds,
                 buckets_per_day: int = settings.buckets_per_day):
        self.network = network
        # Stores define __len__, so an empty one is falsy
        if period_store is None:
            period_store = InMemoryKeyValueStore("period_volumes")
        if rolling_store is None:
            rolling_store = InMemoryKeyValueStore("rolling_volumes")
        self.period_store = period_store
        self.rolling_store = rolling_store
        self.period_volumes = PeriodVolumeStore(self.period_store, bucket_duration)
        self.rolling_volumes = RollingVolumeStore(self.rolling_store, self.period_volumes, buckets_per_day)
        self.assembler = TickerOutputAssembler(self.rolling_volumes)

    @property
    def last_block_number(self) -> Optional[int]:
        return self.rolling_store.get_last(LAST_BLOCK_NUMBER_KEY)

    @property
    def last_block_timestamp(self) -> Optional[int]:
        return self.rolling_store.get_last(LAST_BLOCK_TIMESTAMP_KEY)

    def current_period(self) -> Optional[int]:
        timestamp = self.last_block_timestamp
        if timestamp is None:
            return None
        return self.period_volumes.period_for(timestamp)

    def dex_info(self, block_number: int) -> DexInfo:
        return DexInfo(
            protocol=settings.protocol,
            version=settings.protocol_version,
            chain=self.network,
            block_number=block_number,
            factory_address=settings.get_factory_address(self.network)
        )

    def _check_order(self, block: BlockInput) -> None:
        last_number = self.last_block_number
        if last_number is not None and block.number <= last_number:
            raise OutOfOrderBlockError(
                f"Block {block.number} on {self.network} is not after last processed block {last_number}"
            )

        last_timestamp = self.last_block_timestamp
        if last_timestamp is not None and block.timestamp < last_timestamp:
            raise OutOfOrderBlockError(
                f"Block {block.number} on {self.network} has timestamp {block.timestamp} "
                f"before last processed timestamp {last_timestamp}"
            )

    def process_block(self, block: BlockInput,
                      passthrough_pools: Sequence[PoolCreated] = ()) -> TickerOutput:
        """
        Process one block. Store writes are committed together, or not at all
        if the block fails.
        """
        if block.timestamp is None:
            raise MissingBlockTimestampError(f"Block {block.number} missing header or timestamp")

        self._check_order(block)

        aggregation = aggregate_block(block.logs)
        period = self.period_volumes.period_for(block.timestamp)

        with block_transaction(self.period_store, self.rolling_store):
            self.period_volumes.accumulate(aggregation.pools, period)
            self.rolling_volumes.update(aggregation.pools, period)
            self.rolling_store.set_max(LAST_BLOCK_NUMBER_KEY, block.number)
            self.rolling_store.set_max(LAST_BLOCK_TIMESTAMP_KEY, block.timestamp)

            output = self.assembler.assemble(
                aggregation.pools,
                block_number=block.number,
                timestamp=block.timestamp,
                pools_created=aggregation.pools_created,
                passthrough_pools=passthrough_pools,
                dex_info=self.dex_info(block.number)
            )

        return output
