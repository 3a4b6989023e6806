"""Read Uniswap V4 pool state straight from PoolManager storage"""

import logging
from typing import Any, Dict, Iterable, List, Union

from eth_typing import Hash32

from .encoding import encode_word
from .errors import SlotNotFound
from .hashing import WordLike, as_word, to_hex, word_to_int
from .packed import LIQUIDITY, V4_SLOT0, V4_TICK_INFO, Layout, decode
from .prober import StorageReader, inclusive_range, probe
from .slots import (
    POOLS_SLOT,
    MappingKey,
    pool_liquidity_slot,
    pool_state_slot,
    tick_bitmap_slot,
    tick_info_slot,
)

logger = logging.getLogger(__name__)

PoolIdLike = Union[bytes, str]

DEFAULT_CANDIDATES = inclusive_range(0, 20)


class PoolStateReader:
    """
    Decode pool state read through any storage reader.

    Args:
        reader: callable returning the 32-byte word at a slot
        pools_slot: base slot of the `_pools` mapping
        slot0_layout: bit layout of the packed slot0 word
    """

    def __init__(self, reader: StorageReader, pools_slot: int = POOLS_SLOT, slot0_layout: Layout = V4_SLOT0):
        self.reader = reader
        self.pools_slot = pools_slot
        self.slot0_layout = slot0_layout

    def _read(self, slot: bytes) -> Hash32:
        return as_word(self.reader(slot))

    def state_slot(self, pool_id: PoolIdLike) -> Hash32:
        return pool_state_slot(pool_id, self.pools_slot)

    def raw_slot0(self, pool_id: PoolIdLike) -> Hash32:
        slot = self.state_slot(pool_id)
        raw = self._read(slot)
        logger.debug(
            "pool %s slot0 at %s = %s",
            to_hex(encode_word('bytes32', pool_id)), to_hex(slot), to_hex(raw),
        )
        return raw

    def slot0(self, pool_id: PoolIdLike) -> Dict[str, int]:
        return decode(self.raw_slot0(pool_id), self.slot0_layout)

    def liquidity(self, pool_id: PoolIdLike) -> int:
        raw = self._read(pool_liquidity_slot(pool_id, self.pools_slot))
        return decode(raw, LIQUIDITY)['liquidity']

    def tick_info(self, pool_id: PoolIdLike, tick: int) -> Dict[str, int]:
        raw = self._read(tick_info_slot(pool_id, tick, self.pools_slot))
        return decode(raw, V4_TICK_INFO)

    def tick_bitmap(self, pool_id: PoolIdLike, word_pos: int) -> int:
        return word_to_int(self._read(tick_bitmap_slot(pool_id, word_pos, self.pools_slot)))

    def pool_info(self, pool_id: PoolIdLike) -> Dict[str, Any]:
        slot = self.state_slot(pool_id)
        raw = self._read(slot)
        return {
            'poolId': to_hex(encode_word('bytes32', pool_id)),
            'storageSlot': to_hex(slot),
            'rawData': to_hex(raw),
            **decode(raw, self.slot0_layout),
            'liquidity': self.liquidity(pool_id),
        }

    def read_pools(self, pool_ids: Iterable[PoolIdLike]) -> List[Dict[str, Any]]:
        return [self.pool_info(pool_id) for pool_id in pool_ids]

    def locate_pools_slot(
        self,
        pool_id: PoolIdLike,
        expected: WordLike,
        candidates: Iterable[int] = DEFAULT_CANDIDATES,
    ) -> int:
        """
        Probe for the `_pools` mapping using a pool whose slot0 word is known.

        Raises SlotNotFound if no candidate matches.
        """
        candidates = list(candidates)
        found = probe(MappingKey('bytes32', pool_id), candidates, expected, self.reader)
        if found is None:
            raise SlotNotFound(candidates, as_word(expected))
        return found
