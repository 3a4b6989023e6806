"""
Uniswap V4 pool identifiers

    PoolId = keccak256(abi.encode(currency0, currency1, fee, tickSpacing, hooks))

with currency0 < currency1 compared as 160-bit integers.
"""

from dataclasses import dataclass
from typing import Tuple, Union

from eth_typing import Hash32
from eth_utils import to_canonical_address, to_checksum_address

from .encoding import encode_abi
from .errors import EncodingError
from .hashing import keccak256

AddressLike = Union[str, bytes]

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'

POOL_KEY_TYPES = ['address', 'address', 'uint24', 'int24', 'address']

# fee value marking a pool whose LP fee is set by its hook
DYNAMIC_FEE_FLAG = 0x800000


def _address_int(address: AddressLike) -> int:
    try:
        return int.from_bytes(to_canonical_address(address), byteorder='big')
    except (TypeError, ValueError) as e:
        raise EncodingError(f"invalid address {address!r}") from e


def sort_currencies(currency_a: AddressLike, currency_b: AddressLike) -> Tuple[AddressLike, AddressLike]:
    """Order two currencies numerically; equal addresses keep their order"""
    if _address_int(currency_b) < _address_int(currency_a):
        return currency_b, currency_a
    return currency_a, currency_b


def compute_pool_id(
    currency_a: AddressLike,
    currency_b: AddressLike,
    fee: int,
    tick_spacing: int,
    hooks: AddressLike = ZERO_ADDRESS,
) -> Hash32:
    """
    Calculate the PoolId for a pool key.

    The two currencies may be given in either order; they are sorted before
    encoding so both orders give the same id.
    """
    currency0, currency1 = sort_currencies(currency_a, currency_b)
    encoded = encode_abi(POOL_KEY_TYPES, [currency0, currency1, fee, tick_spacing, hooks])
    return keccak256(encoded)


@dataclass(frozen=True)
class PoolKey:
    currency0: AddressLike
    currency1: AddressLike
    fee: int
    tick_spacing: int
    hooks: AddressLike = ZERO_ADDRESS

    def sorted(self) -> 'PoolKey':
        currency0, currency1 = sort_currencies(self.currency0, self.currency1)
        return PoolKey(
            to_checksum_address(currency0),
            to_checksum_address(currency1),
            self.fee,
            self.tick_spacing,
            to_checksum_address(self.hooks),
        )

    @property
    def is_dynamic_fee(self) -> bool:
        return self.fee == DYNAMIC_FEE_FLAG

    @property
    def pool_id(self) -> Hash32:
        return compute_pool_id(
            self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks
        )
