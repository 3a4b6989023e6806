"""
Keccak-256 and 32-byte word helpers

The EVM uses the original Keccak padding, not NIST SHA3-256, so hashlib's
sha3_256 gives different digests. eth_hash picks whichever backend is installed.
"""

from typing import Union

from eth_hash.auto import keccak
from eth_typing import Hash32
from eth_utils import add_0x_prefix, is_hexstr, remove_0x_prefix

WORD_SIZE = 32
WORD_BITS = 256
MAX_WORD = (1 << WORD_BITS) - 1

WordLike = Union[bytes, bytearray, str, int]


def keccak256(data: bytes) -> Hash32:
    """Hash an arbitrary byte string, returning the 32-byte digest"""
    return Hash32(keccak(bytes(data)))


def int_to_word(value: int) -> Hash32:
    if value < 0 or value > MAX_WORD:
        raise ValueError(f"{value} does not fit in a 256-bit word")
    return Hash32(value.to_bytes(WORD_SIZE, byteorder='big'))


def word_to_int(word: bytes) -> int:
    return int.from_bytes(as_word(word), byteorder='big')


def as_word(value: WordLike) -> Hash32:
    """
    Coerce a storage word into exactly 32 bytes.

    Accepts bytes (HexBytes included), 0x-prefixed or bare hex strings and
    non-negative ints. Shorter inputs are left-padded with zeros, the way
    nodes sometimes return "0x0" for empty storage.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a storage word")
    if isinstance(value, int):
        return int_to_word(value)
    if isinstance(value, str):
        if not is_hexstr(value):
            raise ValueError(f"not a hex string: {value!r}")
        digits = remove_0x_prefix(value)
        if len(digits) % 2:
            digits = '0' + digits
        value = bytes.fromhex(digits)
    if isinstance(value, (bytes, bytearray)):
        if len(value) > WORD_SIZE:
            raise ValueError(f"word is {len(value)} bytes, expected at most {WORD_SIZE}")
        return Hash32(bytes(value).rjust(WORD_SIZE, b'\x00'))
    raise TypeError(f"cannot interpret {type(value).__name__} as a storage word")


def to_hex(word: bytes) -> str:
    """0x-prefixed lowercase hex, as eth_getStorageAt expects"""
    return add_0x_prefix(bytes(word).hex())
