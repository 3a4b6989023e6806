"""
Find which storage index a mapping occupies

Given a key whose entry is known to hold `expected`, derive the entry's slot
for each candidate base index and read it back. The lowest index whose word
matches is the mapping's base slot.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from eth_typing import Hash32

from .hashing import WordLike, as_word, to_hex
from .slots import KeyLike, mapping_slot

logger = logging.getLogger(__name__)

StorageReader = Callable[[bytes], bytes]

EMPTY_WORD = b'\x00' * 32


@dataclass(frozen=True)
class ProbeHit:
    index: int
    slot: Hash32
    raw: Hash32

    @property
    def is_empty(self) -> bool:
        return self.raw == EMPTY_WORD


def inclusive_range(lo: int, hi: int) -> range:
    if lo < 0 or hi < lo:
        raise ValueError(f"bad candidate range [{lo}, {hi}]")
    return range(lo, hi + 1)


def _ordered(candidates: Iterable[int]) -> list:
    indices = sorted(set(candidates))
    if indices and indices[0] < 0:
        raise ValueError(f"negative base slot index {indices[0]}")
    return indices


def probe_all(key: KeyLike, candidates: Iterable[int], reader: StorageReader) -> Iterator[ProbeHit]:
    """Read the derived slot for every candidate index, lowest first"""
    for index in _ordered(candidates):
        slot = mapping_slot(index, key)
        raw = as_word(reader(slot))
        logger.debug("base slot %d -> %s = %s", index, to_hex(slot), to_hex(raw))
        yield ProbeHit(index, slot, raw)


def probe(
    key: KeyLike,
    candidates: Iterable[int],
    expected: WordLike,
    reader: StorageReader,
) -> Optional[int]:
    """
    Return the lowest candidate base slot whose entry for `key` equals
    `expected`, or None if none does.

    Reads happen one at a time, in ascending index order, and stop at the
    first match. Exceptions raised by `reader` propagate unchanged.
    """
    expected = as_word(expected)
    for hit in probe_all(key, candidates, reader):
        if hit.raw == expected:
            logger.info("mapping found at base slot %d (%s)", hit.index, to_hex(hit.slot))
            return hit.index
    logger.debug("no candidate matched %s", to_hex(expected))
    return None
