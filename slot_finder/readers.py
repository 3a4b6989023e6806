"""
Storage readers: callables mapping a 32-byte slot to the 32-byte word stored there

Any `reader(slot) -> bytes` works with the prober; these are the ones backed
by an Ethereum node. Transport problems are raised as ReaderFailure, with the
underlying exception chained. No retries happen here.
"""

import logging

import requests
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import Web3Exception

from .errors import ReaderFailure
from .hashing import as_word, to_hex, word_to_int

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (Web3Exception, requests.RequestException, OSError, ValueError)

EXTSLOAD_SIGNATURE = "extsload(bytes32)"


def get_function_selector(function_signature):
    """Get 4-byte function selector from signature"""
    return Web3.keccak(text=function_signature)[:4]


class Web3StorageReader:
    """eth_getStorageAt through a Web3 instance"""

    def __init__(self, w3: Web3, address: str, block_identifier="latest"):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.block_identifier = block_identifier

    def __call__(self, slot: bytes) -> bytes:
        try:
            raw = self.w3.eth.get_storage_at(
                self.address, word_to_int(slot), block_identifier=self.block_identifier
            )
        except TRANSPORT_ERRORS as e:
            raise ReaderFailure(f"eth_getStorageAt {to_hex(slot)} failed: {e}") from e
        logger.debug("storage %s @ %s = %s", self.address, to_hex(slot), to_hex(raw))
        return as_word(raw)


class ExtsloadReader:
    """
    Read storage through the contract's own `extsload(bytes32)` view.

    The V4 PoolManager exposes this so integrators can read its private
    state with a plain eth_call.
    """

    def __init__(self, w3: Web3, address: str, block_identifier="latest"):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.block_identifier = block_identifier
        self.selector = get_function_selector(EXTSLOAD_SIGNATURE)

    def __call__(self, slot: bytes) -> bytes:
        data = self.selector + encode(['bytes32'], [bytes(slot)])
        try:
            result = self.w3.eth.call(
                {'to': self.address, 'data': data},
                block_identifier=self.block_identifier,
            )
        except TRANSPORT_ERRORS as e:
            raise ReaderFailure(f"extsload {to_hex(slot)} failed: {e}") from e
        try:
            (raw,) = decode(['bytes32'], result)
        except DecodingError as e:
            # empty return data: no code at the address, or no extsload
            raise ReaderFailure(f"extsload {to_hex(slot)} returned no word: {e}") from e
        logger.debug("extsload %s @ %s = %s", self.address, to_hex(slot), to_hex(raw))
        return as_word(raw)


class JsonRpcStorageReader:
    """eth_getStorageAt as a bare JSON-RPC POST, without web3"""

    def __init__(self, rpc_url: str, address: str, block="latest", timeout=30, session=None):
        self.rpc_url = rpc_url
        self.address = Web3.to_checksum_address(address)
        self.block = block if isinstance(block, str) else hex(block)
        self.timeout = timeout
        self.session = session or requests.Session()
        self._next_id = 1

    def __call__(self, slot: bytes) -> bytes:
        payload = {
            "jsonrpc": "2.0",
            "method": "eth_getStorageAt",
            "params": [self.address, to_hex(slot), self.block],
            "id": self._next_id,
        }
        self._next_id += 1
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except TRANSPORT_ERRORS as e:
            raise ReaderFailure(f"eth_getStorageAt {to_hex(slot)} failed: {e}") from e

        if "error" in result:
            raise ReaderFailure(f"eth_getStorageAt {to_hex(slot)}: {result['error']}")
        try:
            return as_word(result["result"])
        except (KeyError, TypeError, ValueError) as e:
            raise ReaderFailure(f"malformed eth_getStorageAt response: {result!r}") from e
