from enum import Enum
from typing import Dict, List
from pydantic import BaseModel
from .events import DecodedPoolCreated


class TokenSide(str, Enum):
    """Which pool token a volume belongs to; the value is the store key suffix"""
    TOKEN0 = "t0"
    TOKEN1 = "t1"


class PoolBlockAggregate(BaseModel):
    """Per-pool swap totals for a single block"""
    pool_id: str
    volume_token0: int = 0
    volume_token1: int = 0
    swap_count: int = 0
    last_sqrt_price_x96: int = 0
    
    def volume(self, token: TokenSide) -> int:
        return self.volume_token0 if token is TokenSide.TOKEN0 else self.volume_token1


class BlockAggregation(BaseModel):
    """Everything one pass over a block's logs produces"""
    pools: Dict[str, PoolBlockAggregate] = {}
    pools_created: List[DecodedPoolCreated] = []


class PeriodBucket(BaseModel):
    pool_id: str
    period: int
    volume_token0: int = 0
    volume_token1: int = 0


class RollingTotal(BaseModel):
    pool_id: str
    token: TokenSide
    total_volume: int = 0
