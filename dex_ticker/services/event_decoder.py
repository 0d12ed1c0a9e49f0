import logging
from typing import Callable, Dict, Optional, Union
from dex_ticker.models import LogEntry, DecodedSwap, DecodedSync, DecodedPoolCreated
from dex_ticker.utils import (
    EventKind, PoolDialect, classify_topic, word_at, WORD_SIZE,
    int256_from_word, uint256_from_word, uint160_from_word, uint112_from_word,
    address_from_word
)

logger = logging.getLogger(__name__)

DecodedEvent = Union[DecodedSwap, DecodedSync, DecodedPoolCreated]

# Minimum payload sizes; longer payloads (e.g. PancakeSwap V3 protocol fees) are accepted
V2_SWAP_DATA_SIZE = 4 * WORD_SIZE  # amount0In, amount1In, amount0Out, amount1Out
V2_SYNC_DATA_SIZE = 2 * WORD_SIZE  # reserve0, reserve1
V2_PAIR_CREATED_DATA_SIZE = 2 * WORD_SIZE  # pair, allPairsLength
V3_SWAP_DATA_SIZE = 5 * WORD_SIZE  # amount0, amount1, sqrtPriceX96, liquidity, tick
V3_POOL_CREATED_DATA_SIZE = 2 * WORD_SIZE  # tickSpacing, pool

# topic0 plus the indexed sender and recipient
SWAP_TOPICS = 3


def decode_v2_swap(log: LogEntry) -> Optional[DecodedSwap]:
    """
    Swap(address indexed sender, uint amount0In, uint amount1In,
         uint amount0Out, uint amount1Out, address indexed to)
    Exactly one of in/out is nonzero per token, so their sum is the traded amount.
    """
    if len(log.data) < V2_SWAP_DATA_SIZE or len(log.topics) < SWAP_TOPICS:
        logger.debug(f"Skipping malformed V2 swap log from {log.address}")
        return None

    amount0_in = uint256_from_word(word_at(log.data, 0))
    amount1_in = uint256_from_word(word_at(log.data, 1))
    amount0_out = uint256_from_word(word_at(log.data, 2))
    amount1_out = uint256_from_word(word_at(log.data, 3))

    return DecodedSwap(
        pool_id=log.address,
        amount0=amount0_in + amount0_out,
        amount1=amount1_in + amount1_out,
        dialect=PoolDialect.CONSTANT_PRODUCT
    )


def decode_v2_sync(log: LogEntry) -> Optional[DecodedSync]:
    """Sync(uint112 reserve0, uint112 reserve1)"""
    if len(log.data) < V2_SYNC_DATA_SIZE:
        logger.debug(f"Skipping malformed V2 sync log from {log.address}")
        return None

    return DecodedSync(
        pool_id=log.address,
        reserve0=uint112_from_word(word_at(log.data, 0)),
        reserve1=uint112_from_word(word_at(log.data, 1))
    )


def decode_v3_swap(log: LogEntry) -> Optional[DecodedSwap]:
    """
    Swap(address indexed sender, address indexed recipient, int256 amount0,
         int256 amount1, uint160 sqrtPriceX96, uint128 liquidity, int24 tick)
    Amounts are signed from the pool's point of view: positive in, negative out.
    """
    if len(log.data) < V3_SWAP_DATA_SIZE or len(log.topics) < SWAP_TOPICS:
        logger.debug(f"Skipping malformed V3 swap log from {log.address}")
        return None

    return DecodedSwap(
        pool_id=log.address,
        amount0=int256_from_word(word_at(log.data, 0)),
        amount1=int256_from_word(word_at(log.data, 1)),
        sqrt_price_x96=uint160_from_word(word_at(log.data, 2)),
        dialect=PoolDialect.CONCENTRATED_LIQUIDITY
    )


def decode_v2_pair_created(log: LogEntry) -> Optional[DecodedPoolCreated]:
    """PairCreated(address indexed token0, address indexed token1, address pair, uint)"""
    if len(log.data) < V2_PAIR_CREATED_DATA_SIZE or len(log.topics) < 3:
        logger.debug(f"Skipping malformed PairCreated log from {log.address}")
        return None

    return DecodedPoolCreated(
        pool_id=address_from_word(word_at(log.data, 0)),
        token0=address_from_word(log.topics[1]),
        token1=address_from_word(log.topics[2]),
        transaction_hash=log.transaction_hash,
        dialect=PoolDialect.CONSTANT_PRODUCT
    )


def decode_v3_pool_created(log: LogEntry) -> Optional[DecodedPoolCreated]:
    """
    PoolCreated(address indexed token0, address indexed token1, uint24 indexed fee,
                int24 tickSpacing, address pool)
    """
    if len(log.data) < V3_POOL_CREATED_DATA_SIZE or len(log.topics) < 4:
        logger.debug(f"Skipping malformed PoolCreated log from {log.address}")
        return None

    return DecodedPoolCreated(
        pool_id=address_from_word(word_at(log.data, 1)),
        token0=address_from_word(log.topics[1]),
        token1=address_from_word(log.topics[2]),
        fee=uint256_from_word(log.topics[3]),
        tick_spacing=int256_from_word(word_at(log.data, 0)),
        transaction_hash=log.transaction_hash,
        dialect=PoolDialect.CONCENTRATED_LIQUIDITY
    )


# One decoder per event kind
DECODERS: Dict[EventKind, Callable[[LogEntry], Optional[DecodedEvent]]] = {
    EventKind.V2_SWAP: decode_v2_swap,
    EventKind.V2_SYNC: decode_v2_sync,
    EventKind.V2_PAIR_CREATED: decode_v2_pair_created,
    EventKind.V3_SWAP: decode_v3_swap,
    EventKind.V3_POOL_CREATED: decode_v3_pool_created,
}


def classify_log(log: LogEntry) -> Optional[EventKind]:
    """Event kind of a log by its topic0, None for logs we do not handle"""
    if not log.topics:
        return None
    return classify_topic(log.topics[0])


def decode_log(log: LogEntry) -> Optional[DecodedEvent]:
    """
    Route a log by topic0 and decode it.
    Returns None for unrelated or malformed logs.
    """
    kind = classify_log(log)
    if kind is None:
        return None

    return DECODERS[kind](log)
