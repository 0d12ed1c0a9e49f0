import logging
from typing import Callable, Dict, Iterable
from dex_ticker.models import (
    LogEntry, DecodedSwap, DecodedSync, DecodedPoolCreated,
    PoolBlockAggregate, BlockAggregation
)
from dex_ticker.services.event_decoder import DECODERS, DecodedEvent, classify_log
from dex_ticker.utils import EventKind, reserves_to_sqrt_price

logger = logging.getLogger(__name__)


def apply_swap(aggregation: BlockAggregation, swap: DecodedSwap) -> None:
    entry = aggregation.pools.setdefault(swap.pool_id, PoolBlockAggregate(pool_id=swap.pool_id))

    # Sign encodes direction, volume counts both
    entry.volume_token0 += abs(swap.amount0)
    entry.volume_token1 += abs(swap.amount1)
    entry.swap_count += 1

    if swap.sqrt_price_x96 is not None:
        entry.last_sqrt_price_x96 = swap.sqrt_price_x96


def apply_sync(aggregation: BlockAggregation, sync: DecodedSync) -> None:
    entry = aggregation.pools.setdefault(sync.pool_id, PoolBlockAggregate(pool_id=sync.pool_id))
    entry.last_sqrt_price_x96 = reserves_to_sqrt_price(sync.reserve0, sync.reserve1)


def apply_pool_created(aggregation: BlockAggregation, pool: DecodedPoolCreated) -> None:
    aggregation.pools_created.append(pool)


# One handler per event kind
HANDLERS: Dict[EventKind, Callable[[BlockAggregation, DecodedEvent], None]] = {
    EventKind.V2_SWAP: apply_swap,
    EventKind.V3_SWAP: apply_swap,
    EventKind.V2_SYNC: apply_sync,
    EventKind.V2_PAIR_CREATED: apply_pool_created,
    EventKind.V3_POOL_CREATED: apply_pool_created,
}


def aggregate_block(logs: Iterable[LogEntry]) -> BlockAggregation:
    """
    Group one block's logs by pool in a single pass.
    Only pools with at least one swap appear in the result; a Sync-only pool
    still gets an entry while scanning so that a later swap keeps its price.
    """
    aggregation = BlockAggregation()

    for log in logs:
        kind = classify_log(log)
        if kind is None:
            continue

        event = DECODERS[kind](log)
        if event is None:
            continue

        HANDLERS[kind](aggregation, event)

    aggregation.pools = {
        pool_id: entry for pool_id, entry in aggregation.pools.items() if entry.swap_count > 0
    }

    logger.debug(
        f"Aggregated {sum(entry.swap_count for entry in aggregation.pools.values())} swaps "
        f"across {len(aggregation.pools)} pools"
    )
    return aggregation
