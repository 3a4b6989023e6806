"""
slot_finder: read Uniswap V4 style contract state from raw storage

    from slot_finder import mapping_slot, decode, V4_SLOT0

    slot = mapping_slot(6, ('bytes32', pool_id))
    fields = decode(w3.eth.get_storage_at(pool_manager, slot), V4_SLOT0)
"""

from .encoding import encode_abi, encode_word
from .errors import (
    EncodingError,
    LayoutError,
    ReaderFailure,
    SlotFinderError,
    SlotNotFound,
)
from .hashing import as_word, keccak256, to_hex
from .packed import (
    LAYOUTS,
    V2_RESERVES,
    V3_SLOT0,
    V4_SLOT0,
    V4_TICK_INFO,
    FieldSpec,
    Layout,
    decode,
    encode,
)
from .pool_id import PoolKey, compute_pool_id, sort_currencies
from .pool_reader import PoolStateReader
from .prober import ProbeHit, inclusive_range, probe, probe_all
from .readers import ExtsloadReader, JsonRpcStorageReader, Web3StorageReader
from .slots import (
    POOLS_SLOT,
    MappingKey,
    mapping_slot,
    nested_mapping_slot,
    offset_slot,
    pool_state_slot,
)

__version__ = "0.1.0"
