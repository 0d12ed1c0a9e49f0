import logging
from typing import Mapping
from dex_ticker.config import settings
from dex_ticker.models import PoolBlockAggregate, PeriodBucket, TokenSide
from dex_ticker.services.store import KeyValueStore

logger = logging.getLogger(__name__)


def period_index(timestamp: int, bucket_duration: int) -> int:
    """Bucket a block timestamp falls into"""
    return timestamp // bucket_duration


class PeriodVolumeStore:
    """
    Per-pool, per-token volume accumulated into fixed-width time buckets.
    Buckets only ever grow: several blocks of the same period all add to it,
    and old buckets stay readable after they leave the rolling window.
    """

    def __init__(self, store: KeyValueStore, bucket_duration: int = settings.bucket_duration_seconds):
        self.store = store
        self.bucket_duration = bucket_duration

    @staticmethod
    def bucket_key(pool_id: str, period: int, token: TokenSide) -> str:
        return f"{pool_id}:{period}:{token.value}"

    def period_for(self, timestamp: int) -> int:
        return period_index(timestamp, self.bucket_duration)

    def accumulate(self, pools: Mapping[str, PoolBlockAggregate], period: int) -> None:
        """Add each pool's block volume to its bucket for period"""
        for pool_id, aggregate in pools.items():
            for token in TokenSide:
                volume = aggregate.volume(token)
                if volume:
                    self.store.add(self.bucket_key(pool_id, period, token), volume)

        logger.debug(f"Accumulated volume of {len(pools)} pools into period {period}")

    def get_volume(self, pool_id: str, period: int, token: TokenSide) -> int:
        return self.store.get_last(self.bucket_key(pool_id, period, token)) or 0

    def get_bucket(self, pool_id: str, period: int) -> PeriodBucket:
        return PeriodBucket(
            pool_id=pool_id,
            period=period,
            volume_token0=self.get_volume(pool_id, period, TokenSide.TOKEN0),
            volume_token1=self.get_volume(pool_id, period, TokenSide.TOKEN1)
        )
