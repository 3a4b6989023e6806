"""
Calculate Solidity mapping storage slots

For a mapping at storage slot N:
  storage_slot = keccak256(abi.encode(key, N))

Where:
  - key is the mapping key, padded to 32 bytes per its ABI type
  - N is the base storage slot number, encoded as uint256

Nested mappings fold the rule: the slot of the outer entry becomes the base
slot of the inner mapping.
"""

from dataclasses import dataclass
from typing import Any, Tuple, Union

from eth_typing import Hash32

from .encoding import encode_abi, parse_type
from .errors import EncodingError
from .hashing import MAX_WORD, int_to_word, keccak256, word_to_int

# Uniswap V4 PoolManager: `mapping(PoolId => Pool.State) internal _pools`
POOLS_SLOT = 6

# Pool.State member offsets, in words from the pool's base slot
LIQUIDITY_OFFSET = 3
TICKS_OFFSET = 4
TICK_BITMAP_OFFSET = 5


@dataclass(frozen=True)
class MappingKey:
    """A mapping key together with the ABI type it is declared as"""
    abi_type: str
    value: Any

    def __post_init__(self):
        parse_type(self.abi_type)


KeyLike = Union[MappingKey, Tuple[str, Any]]
BaseSlot = Union[int, bytes]


def _as_key(key: KeyLike) -> MappingKey:
    if isinstance(key, MappingKey):
        return key
    try:
        abi_type, value = key
    except (TypeError, ValueError) as e:
        raise EncodingError(f"mapping key must be (abi_type, value), got {key!r}") from e
    return MappingKey(abi_type, value)


def _base_to_int(base_slot: BaseSlot) -> int:
    if isinstance(base_slot, (bytes, bytearray)):
        if len(base_slot) != 32:
            raise EncodingError(f"base slot must be 32 bytes, got {len(base_slot)}")
        return word_to_int(base_slot)
    return base_slot


def mapping_slot(base_slot: BaseSlot, key: KeyLike) -> Hash32:
    """
    Calculate the storage slot for one entry of a mapping.

    Args:
        base_slot: Storage index of the mapping, or a 32-byte slot when the
            mapping itself lives at a derived location
        key: MappingKey or (abi_type, value) pair

    Returns:
        The 32-byte storage slot
    """
    key = _as_key(key)
    data = encode_abi([key.abi_type, 'uint256'], [key.value, _base_to_int(base_slot)])
    return keccak256(data)


def nested_mapping_slot(base_slot: BaseSlot, *keys: KeyLike) -> Hash32:
    """Slot of mapping[k0][k1]...; keys are applied outermost first"""
    if not keys:
        raise EncodingError("at least one key is required")
    slot = base_slot
    for key in keys:
        slot = mapping_slot(slot, key)
    return slot


def offset_slot(slot: BaseSlot, offset: int) -> Hash32:
    """Slot of the struct member `offset` words after `slot`"""
    return int_to_word((_base_to_int(slot) + offset) & MAX_WORD)


# ---------------------------------------------------------------------------
# Uniswap V4 PoolManager layout
# ---------------------------------------------------------------------------

def pool_state_slot(pool_id: Union[bytes, str], pools_slot: int = POOLS_SLOT) -> Hash32:
    """Base slot of _pools[poolId]; slot0 lives here"""
    return mapping_slot(pools_slot, MappingKey('bytes32', pool_id))


def pool_liquidity_slot(pool_id: Union[bytes, str], pools_slot: int = POOLS_SLOT) -> Hash32:
    return offset_slot(pool_state_slot(pool_id, pools_slot), LIQUIDITY_OFFSET)


def tick_info_slot(pool_id: Union[bytes, str], tick: int, pools_slot: int = POOLS_SLOT) -> Hash32:
    """First word of _pools[poolId].ticks[tick]"""
    ticks = offset_slot(pool_state_slot(pool_id, pools_slot), TICKS_OFFSET)
    return mapping_slot(ticks, MappingKey('int24', tick))


def tick_bitmap_slot(pool_id: Union[bytes, str], word_pos: int, pools_slot: int = POOLS_SLOT) -> Hash32:
    """Slot of _pools[poolId].tickBitmap[wordPos]"""
    bitmap = offset_slot(pool_state_slot(pool_id, pools_slot), TICK_BITMAP_OFFSET)
    return mapping_slot(bitmap, MappingKey('int16', word_pos))


def tick_to_word_pos(tick: int, tick_spacing: int) -> int:
    """Calculate the bitmap word position for a tick given tick spacing"""
    if tick_spacing <= 0:
        raise ValueError(f"tick spacing must be positive, got {tick_spacing}")
    compressed = tick // tick_spacing
    return compressed >> 8
