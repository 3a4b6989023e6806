"""Probing candidate base slots against a known storage word"""

import pytest

from conftest import POOL_ID, POOLS_SLOT, RAW_SLOT0
from slot_finder.errors import ReaderFailure
from slot_finder.hashing import as_word
from slot_finder.prober import inclusive_range, probe, probe_all
from slot_finder.slots import MappingKey, mapping_slot

KEY = MappingKey('bytes32', POOL_ID)


class TestProbe:

    def test_finds_observed_pool(self, pool_storage):
        assert probe(KEY, inclusive_range(0, 20), RAW_SLOT0, pool_storage) == POOLS_SLOT

    def test_stops_at_first_match(self, pool_storage):
        probe(KEY, inclusive_range(0, 20), RAW_SLOT0, pool_storage)
        assert pool_storage.reads == [mapping_slot(i, KEY) for i in range(POOLS_SLOT + 1)]

    def test_all_zero_storage(self, storage):
        assert probe(KEY, inclusive_range(0, 20), RAW_SLOT0, storage) is None
        assert len(storage.reads) == 21

    def test_match_outside_range(self, pool_storage):
        assert probe(KEY, inclusive_range(7, 20), RAW_SLOT0, pool_storage) is None

    def test_lowest_index_wins(self, storage):
        for index in (9, 3, 12):
            storage[mapping_slot(index, KEY)] = RAW_SLOT0
        assert probe(KEY, inclusive_range(0, 20), RAW_SLOT0, storage) == 3

    def test_candidates_are_sorted_and_deduplicated(self, storage):
        for index in (4, 8):
            storage[mapping_slot(index, KEY)] = RAW_SLOT0
        assert probe(KEY, [8, 8, 4, 1], RAW_SLOT0, storage) == 4
        assert storage.reads == [mapping_slot(1, KEY), mapping_slot(4, KEY)]

    def test_nonzero_mismatch_is_not_a_match(self, storage):
        storage[mapping_slot(2, KEY)] = "0x01"
        assert probe(KEY, inclusive_range(0, 5), RAW_SLOT0, storage) is None

    def test_expected_as_bytes(self, pool_storage):
        expected = bytes.fromhex(RAW_SLOT0[2:])
        assert probe(KEY, range(10), expected, pool_storage) == POOLS_SLOT

    def test_reader_may_return_hex(self):
        slot = mapping_slot(POOLS_SLOT, KEY)

        def reader(s):
            return RAW_SLOT0 if s == slot else "0x0"

        assert probe(('bytes32', POOL_ID), range(10), RAW_SLOT0, reader) == POOLS_SLOT

    def test_reader_failure_propagates(self):
        calls = []

        def reader(slot):
            calls.append(slot)
            if len(calls) == 3:
                raise ReaderFailure("connection reset")
            return b'\x00' * 32

        with pytest.raises(ReaderFailure):
            probe(KEY, inclusive_range(0, 20), RAW_SLOT0, reader)
        assert len(calls) == 3

    def test_other_reader_errors_propagate_unchanged(self):
        def reader(slot):
            raise TimeoutError("too slow")

        with pytest.raises(TimeoutError):
            probe(KEY, range(3), RAW_SLOT0, reader)

    def test_empty_range(self, storage):
        assert probe(KEY, [], RAW_SLOT0, storage) is None
        assert storage.reads == []

    def test_negative_candidate(self, storage):
        with pytest.raises(ValueError):
            probe(KEY, [-1, 0], RAW_SLOT0, storage)


class TestProbeAll:

    def test_reports_every_candidate(self, pool_storage):
        hits = list(probe_all(KEY, range(3, 8), pool_storage))
        assert [h.index for h in hits] == [3, 4, 5, 6, 7]
        assert [h.is_empty for h in hits] == [True, True, True, False, True]
        assert hits[3].raw == as_word(RAW_SLOT0)
        assert hits[3].slot == mapping_slot(6, KEY)


class TestInclusiveRange:

    def test_bounds(self):
        assert list(inclusive_range(0, 3)) == [0, 1, 2, 3]
        assert list(inclusive_range(5, 5)) == [5]

    @pytest.mark.parametrize("lo,hi", [(-1, 3), (4, 3)])
    def test_bad(self, lo, hi):
        with pytest.raises(ValueError):
            inclusive_range(lo, hi)
