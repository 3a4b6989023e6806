"""Shared fixtures: the observed Base Sepolia pool and an in-memory storage"""

import os

import pytest

from slot_finder.hashing import as_word
from slot_finder.slots import mapping_slot

# Pool read from the Base Sepolia PoolManager; its _pools mapping is at slot 6
POOL_ID = "0x2b12523c52f9376439968e70e1f10ccc106ac80781bf40b0c8eeb2c19a22382e"
RAW_SLOT0 = "0x000000004e20000000fd435c000000000000000000085a6afa601db20218ff54"
POOLS_SLOT = 6

POOL_MANAGER = "0x05E73354cFDd6745C338b50BcFDfA3Aa6fA03408"

ENV_KEYS = (
    "RPC_URL",
    "POOL_MANAGER_ADDRESS",
    "POOLS_SLOT",
    "PROBE_MAX_SLOT",
    "STORAGE_READER",
    "BLOCK",
    "RPC_TIMEOUT",
)


class FakeStorage:
    """Dict-backed reader; unknown slots read as zero"""

    def __init__(self, words=None):
        self.words = {bytes(k): as_word(v) for k, v in (words or {}).items()}
        self.reads = []

    def __setitem__(self, slot, value):
        self.words[bytes(slot)] = as_word(value)

    def __call__(self, slot):
        self.reads.append(bytes(slot))
        return self.words.get(bytes(slot), b'\x00' * 32)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def pool_storage():
    """Storage holding the observed slot0 word at _pools[POOL_ID] for base slot 6"""
    fake = FakeStorage()
    fake[mapping_slot(POOLS_SLOT, ('bytes32', POOL_ID))] = RAW_SLOT0
    return fake


@pytest.fixture
def clean_env(monkeypatch):
    """Isolated os.environ so load_dotenv cannot leak into other tests"""
    env = {k: v for k, v in os.environ.items() if k not in ENV_KEYS}
    monkeypatch.setattr(os, "environ", env)
    return env
