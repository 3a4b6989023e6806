"""
Static ABI encoding for the handful of primitive types used in slot math

Only fixed-size types are supported: uintN, intN, address and bytesM.
Each value occupies one 32-byte slot, so there is no head/tail table.
"""

import re
from typing import Any, Sequence, Tuple

from eth_abi import encode
from eth_abi.exceptions import EncodingError as ABIEncodingError
from eth_utils import is_hexstr, remove_0x_prefix, to_canonical_address

from .errors import EncodingError

_INT_RE = re.compile(r'^(u?)int(\d+)$')
_BYTES_RE = re.compile(r'^bytes(\d+)$')


def parse_type(abi_type: str) -> Tuple[str, int]:
    """
    Validate an ABI type tag.

    Returns (kind, size) where kind is 'uint', 'int', 'address' or 'bytes'
    and size is the width in bits (integers, address) or bytes (bytesM).
    """
    if not isinstance(abi_type, str):
        raise EncodingError(f"type tag must be a string, got {abi_type!r}")

    if abi_type == 'address':
        return 'address', 160

    match = _INT_RE.match(abi_type)
    if match:
        bits = int(match.group(2))
        if bits % 8 or not 8 <= bits <= 256:
            raise EncodingError(f"unsupported integer width in {abi_type!r}")
        return ('uint' if match.group(1) else 'int'), bits

    match = _BYTES_RE.match(abi_type)
    if match:
        size = int(match.group(1))
        if not 1 <= size <= 32:
            raise EncodingError(f"unsupported byte width in {abi_type!r}")
        return 'bytes', size

    raise EncodingError(f"unsupported type {abi_type!r}")


def _normalize_value(abi_type: str, value: Any) -> Any:
    kind, _ = parse_type(abi_type)

    if kind == 'address':
        if isinstance(value, (bytes, bytearray)) and len(value) == 20:
            return bytes(value)
        try:
            # any case is accepted; eth_abi itself insists on a valid checksum
            return to_canonical_address(value)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"invalid address {value!r}") from e

    if kind == 'bytes' and isinstance(value, str):
        if not is_hexstr(value):
            raise EncodingError(f"{abi_type} value must be bytes or hex, got {value!r}")
        digits = remove_0x_prefix(value)
        if len(digits) % 2:
            raise EncodingError(f"odd-length hex for {abi_type}: {value!r}")
        return bytes.fromhex(digits)

    return value


def encode_abi(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    ABI-encode a static tuple, one 32-byte slot per value.

    Unsigned integers and addresses are left-padded with zeros, signed
    integers sign-extended and bytesM right-padded, matching abi.encode.
    """
    types = list(types)
    values = list(values)
    if len(types) != len(values):
        raise EncodingError(
            f"got {len(values)} values for {len(types)} types"
        )

    normalized = [_normalize_value(t, v) for t, v in zip(types, values)]
    try:
        return encode(types, normalized)
    except ABIEncodingError as e:
        raise EncodingError(str(e)) from e


def encode_word(abi_type: str, value: Any) -> bytes:
    """Encode a single value into exactly one 32-byte word"""
    return encode_abi([abi_type], [value])
