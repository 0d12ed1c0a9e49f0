from .events import *
from .aggregates import *
from .ticker import *

__all__ = [
    "LogEntry", "BlockInput", "DecodedSwap", "DecodedSync", "DecodedPoolCreated",
    "TokenSide", "PoolBlockAggregate", "BlockAggregation", "PeriodBucket", "RollingTotal",
    "DexInfo", "PoolCreated", "PoolTicker", "TickerOutput",
    "RollingVolumeResponse", "LatestBlockResponse"
]
