"""
Settings for the command line tools, read from the environment

A .env file in the working directory (or the path passed to load_settings)
is loaded first; variables already set in the process take precedence.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from web3 import Web3

from .readers import ExtsloadReader, JsonRpcStorageReader, Web3StorageReader
from .slots import POOLS_SLOT

# Base Sepolia PoolManager
DEFAULT_POOL_MANAGER = "0x05E73354cFDd6745C338b50BcFDfA3Aa6fA03408"

READER_KINDS = ("storage", "extsload", "jsonrpc")


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value, 0)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _block_env(value: str):
    if value in ("latest", "earliest", "pending", "safe", "finalized"):
        return value
    try:
        return int(value, 0)
    except ValueError:
        raise ValueError(f"BLOCK must be a tag or block number, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    rpc_url: str = "http://localhost:8545"
    pool_manager: str = DEFAULT_POOL_MANAGER
    pools_slot: int = POOLS_SLOT
    probe_max_slot: int = 20
    reader_kind: str = "storage"
    block: object = "latest"
    timeout: int = 30

    def make_reader(self):
        """Build the storage reader named by reader_kind"""
        if self.reader_kind == "jsonrpc":
            return JsonRpcStorageReader(
                self.rpc_url, self.pool_manager, block=self.block, timeout=self.timeout
            )
        w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": self.timeout}))
        if self.reader_kind == "extsload":
            return ExtsloadReader(w3, self.pool_manager, block_identifier=self.block)
        return Web3StorageReader(w3, self.pool_manager, block_identifier=self.block)


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)

    reader_kind = os.getenv("STORAGE_READER", "storage").lower()
    if reader_kind not in READER_KINDS:
        raise ValueError(f"STORAGE_READER must be one of {READER_KINDS}, got {reader_kind!r}")

    return Settings(
        rpc_url=os.getenv("RPC_URL", "http://localhost:8545"),
        pool_manager=os.getenv("POOL_MANAGER_ADDRESS", DEFAULT_POOL_MANAGER),
        pools_slot=_int_env("POOLS_SLOT", POOLS_SLOT),
        probe_max_slot=_int_env("PROBE_MAX_SLOT", 20),
        reader_kind=reader_kind,
        block=_block_env(os.getenv("BLOCK", "latest")),
        timeout=_int_env("RPC_TIMEOUT", 30),
    )
