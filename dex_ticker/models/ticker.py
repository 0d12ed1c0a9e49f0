from typing import List, Optional
from pydantic import BaseModel


class DexInfo(BaseModel):
    protocol: str
    version: str
    chain: str
    block_number: int
    factory_address: Optional[str] = None


class PoolCreated(BaseModel):
    pool_address: str
    token0: str
    token1: str
    fee: int = 0
    block_number: int
    transaction_hash: Optional[str] = None
    token0_decimals: int = 0
    token1_decimals: int = 0


class PoolTicker(BaseModel):
    """Per-pool summary of one block; volumes are raw token units"""
    pool_address: str
    block_volume_token0: str
    block_volume_token1: str
    swap_count: int
    price: str
    sqrt_price_x96: str
    volume_24h_token0: str
    volume_24h_token1: str
    block_number: int
    timestamp: int


class TickerOutput(BaseModel):
    dex_info: Optional[DexInfo] = None
    pools_created: List[PoolCreated] = []
    tickers: List[PoolTicker] = []


# Response models
class RollingVolumeResponse(BaseModel):
    pool_address: str
    period: int
    volume_24h_token0: str
    volume_24h_token1: str


class LatestBlockResponse(BaseModel):
    network: str
    block_number: int
    timestamp: int
