"""
Decode packed storage words into typed fields

Solidity packs struct members smaller than 32 bytes into one slot, starting
from the least significant bit. A layout names each member with its bit
width, its offset from bit 0 and whether it is a two's complement int.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping

from eth_typing import Hash32

from .encoding import parse_type
from .errors import EncodingError, LayoutError
from .hashing import WORD_BITS, WordLike, as_word, int_to_word, word_to_int


@dataclass(frozen=True)
class FieldSpec:
    name: str
    width: int
    offset: int
    signed: bool = False

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def min_value(self) -> int:
        return -(1 << (self.width - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.width - 1)) - 1 if self.signed else self.mask

    def extract(self, raw: int) -> int:
        value = (raw >> self.offset) & self.mask
        if self.signed and value >> (self.width - 1):
            value -= 1 << self.width
        return value

    def insert(self, value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(f"{self.name}: expected int, got {value!r}")
        if not self.min_value <= value <= self.max_value:
            raise EncodingError(
                f"{self.name}: {value} outside [{self.min_value}, {self.max_value}]"
            )
        return (value & self.mask) << self.offset

    def describe(self) -> str:
        kind = 'int' if self.signed else 'uint'
        return f"{self.name}: {kind}{self.width} @ bit {self.offset}"


class Layout:
    """
    An ordered, validated list of FieldSpec.

    Raises LayoutError if the layout is empty, a field has a non-positive
    width or negative offset, runs past bit 256, the widths add up to more
    than 256 bits, or a name is repeated. An empty layout is refused rather
    than decoded to {}. Overlapping fields are allowed; decode simply reads
    whatever bits each field names.
    """

    def __init__(self, fields: Iterable[FieldSpec]):
        self.fields = tuple(fields)
        self._validate()

    def _validate(self):
        if not self.fields:
            raise LayoutError("layout has no fields")

        seen = set()
        total = 0
        for field in self.fields:
            if not isinstance(field, FieldSpec):
                raise LayoutError(f"not a FieldSpec: {field!r}")
            if field.width <= 0:
                raise LayoutError(f"{field.name}: width must be positive, got {field.width}")
            if field.offset < 0:
                raise LayoutError(f"{field.name}: offset must be >= 0, got {field.offset}")
            if field.offset + field.width > WORD_BITS:
                raise LayoutError(
                    f"{field.name}: bits [{field.offset}, {field.offset + field.width}) "
                    f"exceed the {WORD_BITS}-bit word"
                )
            if field.name in seen:
                raise LayoutError(f"duplicate field name {field.name!r}")
            seen.add(field.name)
            total += field.width

        if total > WORD_BITS:
            raise LayoutError(f"fields use {total} bits, more than {WORD_BITS}")

    @classmethod
    def sequential(cls, *members) -> 'Layout':
        """
        Build a layout the way solc packs struct members: each (name, abi_type)
        pair starts right after the previous one.
        """
        fields = []
        offset = 0
        for name, abi_type in members:
            if abi_type == 'bool':
                kind, width = 'uint', 8
            else:
                try:
                    kind, width = parse_type(abi_type)
                except EncodingError as e:
                    raise LayoutError(f"{name}: {e}") from e
                if kind == 'bytes':
                    width *= 8
            fields.append(FieldSpec(name, width, offset, kind == 'int'))
            offset += width
        return cls(fields)

    @classmethod
    def from_spec(cls, spec: str) -> 'Layout':
        """
        Parse "name:width@offset[:signed],..." e.g.
        "sqrtPriceX96:160@0,tick:24@160:signed"
        """
        fields = []
        for chunk in spec.split(','):
            chunk = chunk.strip()
            if not chunk:
                continue
            parts = chunk.split(':')
            if len(parts) not in (2, 3) or '@' not in parts[1]:
                raise LayoutError(f"bad field description {chunk!r}")
            signed = False
            if len(parts) == 3:
                if parts[2] not in ('signed', 'unsigned'):
                    raise LayoutError(f"bad signedness in {chunk!r}")
                signed = parts[2] == 'signed'
            width, offset = parts[1].split('@', 1)
            try:
                fields.append(FieldSpec(parts[0], int(width, 0), int(offset, 0), signed))
            except ValueError as e:
                raise LayoutError(f"bad width/offset in {chunk!r}") from e
        return cls(fields)

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __eq__(self, other):
        return isinstance(other, Layout) and self.fields == other.fields

    def __hash__(self):
        return hash(self.fields)

    def __repr__(self):
        return f"Layout({list(self.fields)!r})"

    @property
    def names(self):
        return [f.name for f in self.fields]


def decode(word: WordLike, layout: Layout) -> Dict[str, int]:
    """Decode a raw storage word into {field name: int}, in layout order"""
    raw = word_to_int(as_word(word))
    return {field.name: field.extract(raw) for field in layout}


def encode(values: Mapping[str, int], layout: Layout) -> Hash32:
    """
    Pack field values into a storage word; the inverse of decode.

    Every field of the layout must be given, and no others.
    """
    unknown = set(values) - set(layout.names)
    if unknown:
        raise EncodingError(f"fields not in layout: {sorted(unknown)}")

    raw = 0
    for field in layout:
        if field.name not in values:
            raise EncodingError(f"missing value for {field.name}")
        raw |= field.insert(values[field.name])
    return int_to_word(raw)


# Uniswap V4 Pool.State.slot0. The offsets follow the packed Slot0 type, but
# they have not been checked against every deployment.
V4_SLOT0 = Layout([
    FieldSpec('sqrtPriceX96', 160, 0),
    FieldSpec('tick', 24, 160, signed=True),
    FieldSpec('protocolFee', 24, 184),
    FieldSpec('lpFee', 24, 208),
])

# First word of Pool.TickInfo
V4_TICK_INFO = Layout([
    FieldSpec('liquidityGross', 128, 0),
    FieldSpec('liquidityNet', 128, 128, signed=True),
])

LIQUIDITY = Layout([FieldSpec('liquidity', 128, 0)])

V3_SLOT0 = Layout.sequential(
    ('sqrtPriceX96', 'uint160'),
    ('tick', 'int24'),
    ('observationIndex', 'uint16'),
    ('observationCardinality', 'uint16'),
    ('observationCardinalityNext', 'uint16'),
    ('feeProtocol', 'uint8'),
    ('unlocked', 'bool'),
)

# UniswapV2Pair slot 8: reserve0 | reserve1 | blockTimestampLast, from bit 0
V2_RESERVES = Layout.sequential(
    ('reserve0', 'uint112'),
    ('reserve1', 'uint112'),
    ('blockTimestampLast', 'uint32'),
)

LAYOUTS = {
    'v4-slot0': V4_SLOT0,
    'v4-tick-info': V4_TICK_INFO,
    'liquidity': LIQUIDITY,
    'v3-slot0': V3_SLOT0,
    'v2-reserves': V2_RESERVES,
}
