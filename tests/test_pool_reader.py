import pytest

from conftest import POOL_ID, RAW_SLOT0
from slot_finder.errors import SlotNotFound
from slot_finder.packed import V4_TICK_INFO, encode
from slot_finder.pool_reader import PoolStateReader
from slot_finder.slots import (
    pool_liquidity_slot,
    pool_state_slot,
    tick_bitmap_slot,
    tick_info_slot,
)


@pytest.fixture
def pool(pool_storage):
    pool_storage[pool_liquidity_slot(POOL_ID)] = 1_000_000_000
    pool_storage[tick_info_slot(POOL_ID, -179400)] = encode(
        {'liquidityGross': 5000, 'liquidityNet': -5000}, V4_TICK_INFO
    )
    pool_storage[tick_bitmap_slot(POOL_ID, -12)] = 1 << 255
    return PoolStateReader(pool_storage)


class TestPoolStateReader:

    def test_slot0(self, pool):
        assert pool.slot0(POOL_ID) == {
            'sqrtPriceX96': 0x085A6AFA601DB20218FF54,
            'tick': -179364,
            'protocolFee': 0,
            'lpFee': 20000,
        }

    def test_raw_slot0(self, pool):
        assert pool.raw_slot0(POOL_ID).hex() == RAW_SLOT0[2:]

    def test_liquidity(self, pool):
        assert pool.liquidity(POOL_ID) == 1_000_000_000

    def test_tick_info(self, pool):
        assert pool.tick_info(POOL_ID, -179400) == {'liquidityGross': 5000, 'liquidityNet': -5000}
        assert pool.tick_info(POOL_ID, 0) == {'liquidityGross': 0, 'liquidityNet': 0}

    def test_tick_bitmap(self, pool):
        assert pool.tick_bitmap(POOL_ID, -12) == 1 << 255
        assert pool.tick_bitmap(POOL_ID, -11) == 0

    def test_pool_info(self, pool):
        info = pool.pool_info(POOL_ID)
        assert info['poolId'] == POOL_ID
        assert info['storageSlot'] == "0x" + pool_state_slot(POOL_ID).hex()
        assert info['rawData'] == RAW_SLOT0
        assert info['tick'] == -179364
        assert info['liquidity'] == 1_000_000_000

    def test_pool_info_short_id(self, pool):
        info = pool.pool_info("0xabcd")
        assert info['poolId'] == "0xabcd" + "00" * 30
        assert info['storageSlot'] == "0x" + pool_state_slot("0xabcd").hex()
        assert info['sqrtPriceX96'] == 0

    def test_read_pools(self, pool):
        other = "0x" + "11" * 32
        infos = pool.read_pools([POOL_ID, other])
        assert [i['poolId'] for i in infos] == [POOL_ID, other]
        assert infos[1]['sqrtPriceX96'] == 0

    def test_wrong_pools_slot_reads_empty(self, pool_storage):
        assert PoolStateReader(pool_storage, pools_slot=5).slot0(POOL_ID)['sqrtPriceX96'] == 0


class TestLocatePoolsSlot:

    def test_found(self, pool):
        assert pool.locate_pools_slot(POOL_ID, RAW_SLOT0) == 6

    def test_not_found(self, storage):
        with pytest.raises(SlotNotFound) as excinfo:
            PoolStateReader(storage).locate_pools_slot(POOL_ID, RAW_SLOT0, range(0, 5))
        assert excinfo.value.candidates == [0, 1, 2, 3, 4]
        assert "0..4" in str(excinfo.value)
