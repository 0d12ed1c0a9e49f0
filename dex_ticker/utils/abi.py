"""
Event signatures for the pool and factory logs we decode
"""
from enum import Enum
from typing import Dict, Optional


class PoolDialect(str, Enum):
    """How a pool reports trades and price"""
    CONSTANT_PRODUCT = "constant_product"  # Uniswap V2 and forks: Swap + Sync
    CONCENTRATED_LIQUIDITY = "concentrated_liquidity"  # Uniswap V3 and forks


class EventKind(Enum):
    V2_SWAP = "v2_swap"
    V2_SYNC = "v2_sync"
    V2_PAIR_CREATED = "v2_pair_created"
    V3_SWAP = "v3_swap"
    V3_POOL_CREATED = "v3_pool_created"


# Uniswap V2, SushiSwap, PancakeSwap V2, QuickSwap V2, ...
V2_EVENTS = {
    "Swap": "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822",
    "Sync": "0x1c411e9a96e071241c2f21f7726b17ae89e3cab4c78be50e062b03a9fffbbad1",
    "PairCreated": "0x0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9",
}

# Uniswap V3 and forks keeping its event layout
V3_EVENTS = {
    "PoolCreated": "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118",
    "Swap": "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67",
}

# PancakeSwap V3 appends protocolFeesToken0/protocolFeesToken1 to Swap
PANCAKESWAP_V3_EVENTS = {
    "Swap": "0x19b47279256b2a23a1665c810c8d55a1758940ee09377d4f8d26497a3577dc83",
}

# Canonical signatures, keccak256 of which gives the topics above
EVENT_TEXT_SIGNATURES = {
    V2_EVENTS["Swap"]: "Swap(address,uint256,uint256,uint256,uint256,address)",
    V2_EVENTS["Sync"]: "Sync(uint112,uint112)",
    V2_EVENTS["PairCreated"]: "PairCreated(address,address,address,uint256)",
    V3_EVENTS["PoolCreated"]: "PoolCreated(address,address,uint24,int24,address)",
    V3_EVENTS["Swap"]: "Swap(address,address,int256,int256,uint160,uint128,int24)",
    PANCAKESWAP_V3_EVENTS["Swap"]: "Swap(address,address,int256,int256,uint160,uint128,int24,uint128,uint128)",
}


def _topic(signature_hex: str) -> bytes:
    return bytes.fromhex(signature_hex[2:])


# Static routing table: raw topic0 -> event kind
TOPIC_KINDS: Dict[bytes, EventKind] = {
    _topic(V2_EVENTS["Swap"]): EventKind.V2_SWAP,
    _topic(V2_EVENTS["Sync"]): EventKind.V2_SYNC,
    _topic(V2_EVENTS["PairCreated"]): EventKind.V2_PAIR_CREATED,
    _topic(V3_EVENTS["Swap"]): EventKind.V3_SWAP,
    _topic(PANCAKESWAP_V3_EVENTS["Swap"]): EventKind.V3_SWAP,
    _topic(V3_EVENTS["PoolCreated"]): EventKind.V3_POOL_CREATED,
}


def classify_topic(topic: bytes) -> Optional[EventKind]:
    """Map a log's topic0 to the event kind we handle, if any"""
    return TOPIC_KINDS.get(bytes(topic))


# ERC20 ABI for token decimals of newly created pools
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function"
    }
]
