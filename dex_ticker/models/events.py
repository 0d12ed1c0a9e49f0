from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator
from dex_ticker.utils import PoolDialect, hex_to_bytes, normalize_address


class LogEntry(BaseModel):
    """Raw event log as delivered by the block source"""
    model_config = ConfigDict(frozen=True)
    
    address: str
    topics: List[bytes] = []
    data: bytes = b""
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None
    
    @field_validator("address", mode="before")
    @classmethod
    def _normalize_address(cls, value):
        return normalize_address(value)
    
    @field_validator("topics", mode="before")
    @classmethod
    def _topics_to_bytes(cls, value):
        return [hex_to_bytes(topic) for topic in value]
    
    @field_validator("data", mode="before")
    @classmethod
    def _data_to_bytes(cls, value):
        return hex_to_bytes(value)


class BlockInput(BaseModel):
    """One block as handed over by the host: metadata plus its logs in order"""
    number: int
    timestamp: Optional[int] = None  # unix seconds
    logs: List[LogEntry] = []


class DecodedSwap(BaseModel):
    """Swap normalized across dialects; amounts are signed for concentrated liquidity"""
    model_config = ConfigDict(frozen=True)
    
    pool_id: str
    amount0: int
    amount1: int
    sqrt_price_x96: Optional[int] = None  # only concentrated-liquidity swaps carry a price
    dialect: PoolDialect


class DecodedSync(BaseModel):
    """Reserve snapshot of a constant-product pool"""
    model_config = ConfigDict(frozen=True)
    
    pool_id: str
    reserve0: int
    reserve1: int


class DecodedPoolCreated(BaseModel):
    """Factory log announcing a new pool or pair"""
    model_config = ConfigDict(frozen=True)
    
    pool_id: str
    token0: str
    token1: str
    fee: int = 0
    tick_spacing: Optional[int] = None
    transaction_hash: Optional[str] = None
    dialect: PoolDialect
