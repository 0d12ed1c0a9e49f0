import pytest
from dex_ticker.config import settings
from dex_ticker.models import BlockInput, PoolCreated, TokenSide
from dex_ticker.services.block_processor import (
    BlockProcessor, MissingBlockTimestampError, OutOfOrderBlockError
)
from dex_ticker.services.store import FileKeyValueStore
from dex_ticker.services.ticker_service import TickerService
from tests.log_builders import (
    POOL_A, POOL_B, POOL_C, TOKEN0, TOKEN1, Q96,
    v2_swap_log, v2_sync_log, v3_swap_log, v3_pool_created_log
)

START = 1_700_000_100  # start of a 5 minute bucket


class TestBlockProcessor:
    """Test per-block processing end to end"""
    
    @pytest.fixture
    def processor(self):
        return BlockProcessor("ethereum", bucket_duration=300, buckets_per_day=288)
    
    def test_tickers_for_swapped_pools_only(self, processor):
        output = processor.process_block(BlockInput(number=1, timestamp=START, logs=[
            v2_sync_log(POOL_A, 1000, 4000),
            v2_swap_log(POOL_A, amount0_in=100, amount1_out=390),
            v3_swap_log(POOL_B, -500, 1500, sqrt_price_x96=3 * Q96 // 2),
            v2_sync_log(POOL_C, 1, 1),
        ]))
        
        tickers = {ticker.pool_address: ticker for ticker in output.tickers}
        assert set(tickers) == {POOL_A, POOL_B}
        
        pool_a = tickers[POOL_A]
        assert pool_a.block_volume_token0 == "100"
        assert pool_a.block_volume_token1 == "390"
        assert pool_a.swap_count == 1
        assert pool_a.price == "4"
        assert pool_a.sqrt_price_x96 == str(2 * Q96)
        assert pool_a.volume_24h_token0 == "100"
        assert pool_a.block_number == 1
        assert pool_a.timestamp == START
        
        pool_b = tickers[POOL_B]
        assert pool_b.block_volume_token0 == "500"
        assert pool_b.block_volume_token1 == "1500"
        assert pool_b.price == "2.25"
    
    def test_rolling_volume_accumulates_across_blocks(self, processor):
        for number in range(1, 4):
            output = processor.process_block(BlockInput(
                number=number, timestamp=START + 12 * number,
                logs=[v3_swap_log(POOL_A, 10, -20)]
            ))
        ticker = output.tickers[0]
        assert ticker.block_volume_token0 == "10"
        assert ticker.volume_24h_token0 == "30"
        assert ticker.volume_24h_token1 == "60"
    
    def test_rolling_volume_drops_after_a_day(self, processor):
        processor.process_block(BlockInput(number=1, timestamp=START, logs=[v3_swap_log(POOL_A, 10, -20)]))
        output = processor.process_block(BlockInput(
            number=2, timestamp=START + 86400, logs=[v3_swap_log(POOL_A, 1, -2)]
        ))
        assert output.tickers[0].volume_24h_token0 == "1"
        assert output.tickers[0].volume_24h_token1 == "2"
    
    def test_missing_timestamp_is_fatal(self, processor):
        with pytest.raises(MissingBlockTimestampError):
            processor.process_block(BlockInput(number=1, logs=[v3_swap_log(POOL_A, 10, -20)]))
        assert processor.last_block_number is None
        assert len(processor.period_store) == 0
        assert len(processor.rolling_store) == 0
    
    def test_failed_block_commits_nothing(self, processor, monkeypatch):
        processor.process_block(BlockInput(number=1, timestamp=START, logs=[v3_swap_log(POOL_A, 10, -20)]))
        
        def broken_assemble(*args, **kwargs):
            raise RuntimeError("assembly failed")
        
        monkeypatch.setattr(processor.assembler, "assemble", broken_assemble)
        with pytest.raises(RuntimeError):
            processor.process_block(BlockInput(number=2, timestamp=START + 12, logs=[v3_swap_log(POOL_A, 5, -5)]))
        
        assert processor.last_block_number == 1
        assert processor.rolling_volumes.total(POOL_A, TokenSide.TOKEN0) == 10
        period = processor.period_volumes.period_for(START)
        assert processor.period_volumes.get_volume(POOL_A, period, TokenSide.TOKEN0) == 10
    
    def test_block_number_must_increase(self, processor):
        processor.process_block(BlockInput(number=5, timestamp=START))
        with pytest.raises(OutOfOrderBlockError):
            processor.process_block(BlockInput(number=5, timestamp=START))
        with pytest.raises(OutOfOrderBlockError):
            processor.process_block(BlockInput(number=4, timestamp=START))
    
    def test_timestamp_must_not_go_back(self, processor):
        processor.process_block(BlockInput(number=5, timestamp=START))
        with pytest.raises(OutOfOrderBlockError):
            processor.process_block(BlockInput(number=6, timestamp=START - 1))
        processor.process_block(BlockInput(number=6, timestamp=START))
        assert processor.last_block_number == 6
    
    def test_pools_created(self, processor):
        passthrough = PoolCreated(pool_address=POOL_B, token0=TOKEN0, token1=TOKEN1, block_number=9)
        output = processor.process_block(
            BlockInput(number=9, timestamp=START, logs=[v3_pool_created_log(POOL_C, fee=500)]),
            passthrough_pools=[passthrough]
        )
        assert output.tickers == []
        assert [pool.pool_address for pool in output.pools_created] == [POOL_C, POOL_B]
        created = output.pools_created[0]
        assert created.fee == 500
        assert created.block_number == 9
        assert (created.token0, created.token1) == (TOKEN0, TOKEN1)
    
    def test_dex_info(self, processor):
        output = processor.process_block(BlockInput(number=3, timestamp=START))
        assert output.dex_info.chain == "ethereum"
        assert output.dex_info.block_number == 3
        assert processor.current_period() == START // 300


class TestPersistentProcessor:
    """Test processing over file-backed stores"""
    
    def test_fresh_state_dir_is_written(self, tmp_path):
        period_path, rolling_path = tmp_path / "periods.json", tmp_path / "rolling.json"
        period_store, rolling_store = FileKeyValueStore(period_path), FileKeyValueStore(rolling_path)
        processor = BlockProcessor("ethereum", period_store, rolling_store, 300, 288)
        assert processor.period_store is period_store
        assert processor.rolling_store is rolling_store
        
        processor.process_block(BlockInput(number=1, timestamp=START, logs=[v3_swap_log(POOL_A, 10, -20)]))
        
        restarted = BlockProcessor("ethereum", FileKeyValueStore(period_path), FileKeyValueStore(rolling_path), 300, 288)
        assert restarted.last_block_number == 1
        assert restarted.rolling_volumes.total(POOL_A, TokenSide.TOKEN0) == 10
        assert restarted.period_volumes.get_volume(POOL_A, START // 300, TokenSide.TOKEN1) == 20
    
    def test_ticker_service_uses_state_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "state_dir", str(tmp_path))
        service = TickerService()
        service.process_block("ethereum", BlockInput(number=7, timestamp=START, logs=[v3_swap_log(POOL_A, 3, -4)]))
        
        assert (tmp_path / "ethereum-period_volumes.json").exists()
        assert (tmp_path / "ethereum-rolling_volumes.json").exists()
        
        restarted = TickerService()
        assert restarted.get_latest_block("ethereum").block_number == 7
        assert restarted.get_rolling_volume("ethereum", POOL_A).volume_24h_token1 == "4"
    
    def test_failed_save_keeps_both_stores_at_previous_block(self, tmp_path, monkeypatch):
        period_path, rolling_path = tmp_path / "periods.json", tmp_path / "rolling.json"
        processor = BlockProcessor("ethereum", FileKeyValueStore(period_path), FileKeyValueStore(rolling_path), 300, 288)
        processor.process_block(BlockInput(number=1, timestamp=START, logs=[v3_swap_log(POOL_A, 10, -20)]))
        
        def disk_full(values):
            raise OSError("No space left on device")
        
        monkeypatch.setattr(processor.rolling_store, "_write_snapshot", disk_full)
        with pytest.raises(OSError):
            processor.process_block(BlockInput(number=2, timestamp=START + 12, logs=[v3_swap_log(POOL_A, 5, -5)]))
        
        assert processor.last_block_number == 1
        assert processor.rolling_volumes.total(POOL_A, TokenSide.TOKEN0) == 10
        assert processor.period_volumes.get_volume(POOL_A, START // 300, TokenSide.TOKEN0) == 10
        
        restarted = BlockProcessor("ethereum", FileKeyValueStore(period_path), FileKeyValueStore(rolling_path), 300, 288)
        assert restarted.period_volumes.get_volume(POOL_A, START // 300, TokenSide.TOKEN0) == 10
        assert restarted.rolling_volumes.total(POOL_A, TokenSide.TOKEN0) == 10
        assert sorted(path.name for path in tmp_path.iterdir()) == ["periods.json", "rolling.json"]
