import pytest
from dex_ticker.models import PoolBlockAggregate, TokenSide
from dex_ticker.services.period_volumes import PeriodVolumeStore, period_index
from dex_ticker.services.rolling_volumes import RollingVolumeStore
from dex_ticker.services.store import InMemoryKeyValueStore, block_transaction
from tests.log_builders import POOL_A, POOL_B

BUCKET = 300
BUCKETS_PER_DAY = 288


class CountingStore(InMemoryKeyValueStore):
    """Counts point reads so tests can check eviction cost"""
    
    def __init__(self, name):
        super().__init__(name)
        self.reads = 0
    
    def get_last(self, key):
        self.reads += 1
        return super().get_last(key)


def block(pool_id, volume0, volume1=0):
    return {pool_id: PoolBlockAggregate(pool_id=pool_id, volume_token0=volume0,
                                        volume_token1=volume1, swap_count=1)}


class TestPeriodVolumes:
    """Test additive period buckets"""
    
    @pytest.fixture
    def buckets(self):
        return PeriodVolumeStore(InMemoryKeyValueStore("periods"), BUCKET)
    
    def test_period_index(self):
        assert period_index(0, BUCKET) == 0
        assert period_index(299, BUCKET) == 0
        assert period_index(300, BUCKET) == 1
        assert period_index(1_700_000_123, BUCKET) == 5_666_667
    
    def test_blocks_in_same_period_accumulate(self, buckets):
        buckets.accumulate(block(POOL_A, 10, 20), 5)
        buckets.accumulate(block(POOL_A, 1, 2), 5)
        bucket = buckets.get_bucket(POOL_A, 5)
        assert (bucket.volume_token0, bucket.volume_token1) == (11, 22)
    
    def test_unwritten_bucket_is_zero(self, buckets):
        assert buckets.get_volume(POOL_A, 7, TokenSide.TOKEN0) == 0
        assert buckets.get_bucket(POOL_B, 7).volume_token1 == 0
    
    def test_zero_volume_is_not_written(self, buckets):
        buckets.accumulate(block(POOL_A, 0, 0), 1)
        assert len(buckets.store) == 0


class TestRollingVolumes:
    """Test the incrementally maintained 24h window"""
    
    @pytest.fixture
    def stores(self):
        period_store = CountingStore("periods")
        buckets = PeriodVolumeStore(period_store, BUCKET)
        rolling = RollingVolumeStore(InMemoryKeyValueStore("rolling"), buckets, BUCKETS_PER_DAY)
        return buckets, rolling
    
    def process(self, stores, pools, period):
        buckets, rolling = stores
        with block_transaction(buckets.store, rolling.store):
            buckets.accumulate(pools, period)
            rolling.update(pools, period)
    
    def test_constant_volume_saturates_at_one_day(self, stores):
        """V in every period: the total reaches 288 * V at period 287 and stays there"""
        _, rolling = stores
        volume = 7
        for period in range(600):
            self.process(stores, block(POOL_A, volume, 2 * volume), period)
            expected = min(period + 1, BUCKETS_PER_DAY) * volume
            assert rolling.total(POOL_A, TokenSide.TOKEN0) == expected
            assert rolling.total(POOL_A, TokenSide.TOKEN1) == 2 * expected
    
    def test_one_bucket_read_per_period(self, stores):
        buckets, rolling = stores
        for period in range(400):
            self.process(stores, block(POOL_A, 1), period)
        
        pools = block(POOL_A, 1)
        buckets.accumulate(pools, 400)
        buckets.store.reads = 0
        rolling.update(pools, 400)
        # one evicted bucket per token
        assert buckets.store.reads == 2
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == BUCKETS_PER_DAY
    
    def test_young_pool_never_goes_negative(self, stores):
        _, rolling = stores
        for period in (0, 1, 5, 100, 287):
            self.process(stores, block(POOL_A, 3), period)
            assert rolling.total(POOL_A, TokenSide.TOKEN0) >= 0
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 15
    
    def test_many_blocks_in_one_period_evict_once(self, stores):
        buckets, rolling = stores
        self.process(stores, block(POOL_A, 100), 10)
        for _ in range(5):
            self.process(stores, block(POOL_A, 1), 10 + BUCKETS_PER_DAY)
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 5
        assert buckets.get_volume(POOL_A, 10 + BUCKETS_PER_DAY, TokenSide.TOKEN0) == 5
    
    def test_sparse_activity_evicts_idle_periods(self, stores):
        _, rolling = stores
        self.process(stores, block(POOL_A, 100), 0)
        self.process(stores, block(POOL_A, 10), 200)
        # period 0 left the window at period 288, even though the pool was idle then
        self.process(stores, block(POOL_A, 1), 300)
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 11
        self.process(stores, block(POOL_A, 1), 487)
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 12
        self.process(stores, block(POOL_A, 1), 488)
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 3
    
    def test_idle_longer_than_a_day(self, stores):
        _, rolling = stores
        for period in range(50):
            self.process(stores, block(POOL_A, 2), period)
        self.process(stores, block(POOL_A, 9), 5000)
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 9
    
    def test_pools_are_independent(self, stores):
        _, rolling = stores
        self.process(stores, block(POOL_A, 5), 0)
        self.process(stores, block(POOL_B, 7), 300)
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 5
        assert rolling.total(POOL_B, TokenSide.TOKEN0) == 7
        assert rolling.total_at(POOL_A, TokenSide.TOKEN0, 300) == 0
    
    def test_total_at_does_not_mutate(self, stores):
        _, rolling = stores
        self.process(stores, block(POOL_A, 4), 0)
        self.process(stores, block(POOL_A, 6), 100)
        assert rolling.total_at(POOL_A, TokenSide.TOKEN0, 288) == 6
        assert rolling.total_at(POOL_A, TokenSide.TOKEN0, 100) == 10
        assert rolling.total(POOL_A, TokenSide.TOKEN0) == 10
        assert rolling.last_period(POOL_A) == 100
    
    def test_unknown_pool(self, stores):
        _, rolling = stores
        total = rolling.rolling_total(POOL_B, TokenSide.TOKEN1)
        assert total.total_volume == 0
        assert rolling.last_period(POOL_B) is None
