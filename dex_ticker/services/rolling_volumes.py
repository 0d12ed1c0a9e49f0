"""
Trailing 24h volume per pool, maintained incrementally

The total for a pool always covers the buckets in (period - buckets_per_day, period]
as of the pool's last active period. Each block adds its own volume and
subtracts the buckets that slid out of the window since the pool's previous
active period, so every bucket is added once and evicted once:

- a pool trading every period reads exactly one old bucket per period;
- blocks sharing a period evict nothing after the first of them;
- a pool idle for a whole window or longer is cleared from its total alone.

Nothing here ever re-sums the window.
"""
import logging
from typing import Mapping, Optional
from dex_ticker.config import settings
from dex_ticker.models import PoolBlockAggregate, RollingTotal, TokenSide
from dex_ticker.services.period_volumes import PeriodVolumeStore
from dex_ticker.services.store import KeyValueStore

logger = logging.getLogger(__name__)


class RollingVolumeStore:
    """Rolling window totals driven by bucket eviction"""

    def __init__(self, store: KeyValueStore, period_volumes: PeriodVolumeStore,
                 buckets_per_day: int = settings.buckets_per_day):
        self.store = store
        self.period_volumes = period_volumes
        self.buckets_per_day = buckets_per_day

    @staticmethod
    def total_key(pool_id: str, token: TokenSide) -> str:
        return f"{pool_id}:{token.value}"

    @staticmethod
    def last_period_key(pool_id: str) -> str:
        return f"{pool_id}:last_period"

    def total(self, pool_id: str, token: TokenSide) -> int:
        return self.store.get_last(self.total_key(pool_id, token)) or 0

    def rolling_total(self, pool_id: str, token: TokenSide) -> RollingTotal:
        return RollingTotal(pool_id=pool_id, token=token, total_volume=self.total(pool_id, token))

    def last_period(self, pool_id: str) -> Optional[int]:
        """Last period in which the pool traded, None for unseen pools"""
        return self.store.get_last(self.last_period_key(pool_id))

    def _evicted_volume(self, pool_id: str, token: TokenSide, period: int) -> int:
        """Volume that left the window between the pool's last active period and period"""
        last_period = self.last_period(pool_id)
        if last_period is None or period <= last_period:
            return 0

        if period - last_period >= self.buckets_per_day:
            return self.total(pool_id, token)

        # Already evicted up to last_period - buckets_per_day
        first = max(last_period - self.buckets_per_day + 1, 0)
        last = period - self.buckets_per_day
        return sum(
            self.period_volumes.get_volume(pool_id, evicted, token)
            for evicted in range(first, last + 1)
        )

    def total_at(self, pool_id: str, token: TokenSide, period: int) -> int:
        """Window total as of period, without touching the store"""
        return self.total(pool_id, token) - self._evicted_volume(pool_id, token, period)

    def update(self, pools: Mapping[str, PoolBlockAggregate], period: int) -> None:
        """Slide each active pool's window to period and add the block's volume"""
        for pool_id, aggregate in pools.items():
            for token in TokenSide:
                key = self.total_key(pool_id, token)

                evicted = self._evicted_volume(pool_id, token, period)
                if evicted:
                    self.store.add(key, -evicted)

                delta = aggregate.volume(token)
                if delta:
                    self.store.add(key, delta)

            self.store.set_max(self.last_period_key(pool_id), period)

        logger.debug(f"Updated rolling volumes of {len(pools)} pools at period {period}")
