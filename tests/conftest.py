"""Pytest configuration and fixtures."""

import asyncio
from types import SimpleNamespace
from typing import Any, Awaitable, Callable, Dict, List, Optional

import pytest
from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector
from web3 import Web3

from swapbridge.account import AccountIdentity
from swapbridge.client import ChainClient, event_topic
from swapbridge.config import BridgeConfig


# Well-known development key (hardhat account #0)
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWN_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

AMM_ADDRESS = Web3.to_checksum_address("0x09cabec1ead1c0ba254b09efb3ee13841712be14")
TOKEN_ADDRESS = Web3.to_checksum_address("0x89d24a6b4ccb1b6faa2625fe562bdd9a23260359")
OUTBOUND_BRIDGE = Web3.to_checksum_address("0x4aa42145aa6ebf72e164c9bbc74fbd3788045016")
INBOUND_BRIDGE = Web3.to_checksum_address("0x7301cfa0e1756b71869e93d4e4dca5c7d0eb0aa6")

GWEI = 10**9


def selector(signature: str) -> str:
    return "0x" + function_signature_to_4byte_selector(signature).hex()


def word(value: int) -> bytes:
    return value.to_bytes(32, "big")


def decode_args(types: List[str], data: str) -> tuple:
    """Decode the arguments of hex call data (selector stripped)"""
    return decode(types, bytes.fromhex(data[10:]))


def make_log(address: str, signature: str, topics: List[bytes], block: int, tx_hash: bytes = b"\x11" * 32) -> dict:
    return {
        "address": address,
        "topics": [event_topic(signature)] + list(topics),
        "blockNumber": block,
        "transactionHash": tx_hash,
        "data": b"",
    }


async def _value(v):
    return v


class FakeEth:
    """
    In-memory stand-in for AsyncWeb3.eth

    Records every call and transaction; `on_send` lets a test react to a
    broadcast (emit a log, hang forever, ...).
    """

    def __init__(self, chain_id: int = 1):
        self.head = 100
        self.timestamp = 1_700_000_000
        self.chain_id_value = chain_id
        self.gas_price_value = 20 * GWEI
        self.nonce = 7
        self.estimate = 45_000

        self.call_results: Dict[str, bytes] = {}
        self.calls: List[dict] = []
        self.estimated: List[dict] = []
        self.sent: List[bytes] = []
        self.logs: List[dict] = []
        self.log_queries: List[dict] = []
        self.on_send: Optional[Callable[[bytes], Awaitable[Any]]] = None

    def set_call(self, signature: str, result: bytes) -> None:
        self.call_results[selector(signature)] = result

    @property
    def block_number(self):
        return _value(self.head)

    @property
    def gas_price(self):
        return _value(self.gas_price_value)

    @property
    def chain_id(self):
        return _value(self.chain_id_value)

    async def get_block(self, ident):
        assert ident == "latest"
        return {"number": self.head, "timestamp": self.timestamp}

    async def call(self, tx):
        self.calls.append(tx)
        return self.call_results[tx["data"][:10]]

    async def get_transaction_count(self, address, ident):
        return self.nonce

    async def estimate_gas(self, tx):
        self.estimated.append(dict(tx))
        return self.estimate

    async def send_raw_transaction(self, raw):
        self.sent.append(bytes(raw))
        if self.on_send is not None:
            await self.on_send(bytes(raw))
        return Web3.keccak(raw)

    async def get_logs(self, params):
        self.log_queries.append(dict(params))
        wanted = [t.lower() if t is not None else None for t in params["topics"]]
        out = []
        for log in self.logs:
            if Web3.to_checksum_address(log["address"]) != params["address"]:
                continue
            if not params["fromBlock"] <= log["blockNumber"] <= params["toBlock"]:
                continue
            topics = [Web3.to_hex(t).lower() for t in log["topics"]]
            if len(topics) < len(wanted):
                continue
            if all(w is None or w == t for w, t in zip(wanted, topics)):
                out.append(log)
        return out


class RecordingAccount(AccountIdentity):
    """Account identity that keeps every transaction dict it signs"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.signed: List[dict] = []

    def sign_transaction(self, tx: dict):
        self.signed.append(dict(tx))
        return super().sign_transaction(tx)


def emit_on_send(eth: FakeEth, address: str, signature: str, topics: List[bytes]):
    """on_send hook mining the tx in the next block and emitting one log"""

    async def hook(raw: bytes) -> None:
        eth.head += 1
        eth.logs.append(make_log(address, signature, topics, eth.head, tx_hash=bytes(Web3.keccak(raw))))

    return hook


async def hang_forever(raw: bytes) -> None:
    await asyncio.Event().wait()


@pytest.fixture
def account() -> RecordingAccount:
    return RecordingAccount(PRIVATE_KEY, OWN_ADDRESS)


@pytest.fixture
def eth() -> FakeEth:
    return FakeEth(chain_id=1)


@pytest.fixture
def secondary_eth() -> FakeEth:
    fake = FakeEth(chain_id=77)
    fake.gas_price_value = 1 * GWEI
    return fake


@pytest.fixture
def client(eth, account) -> ChainClient:
    return ChainClient(SimpleNamespace(eth=eth), account, "base", event_poll_interval=0.01)


@pytest.fixture
def secondary_client(secondary_eth, account) -> ChainClient:
    return ChainClient(SimpleNamespace(eth=secondary_eth), account, "secondary", event_poll_interval=0.01)


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(
        eth_rpc_url="http://localhost:8545",
        xdai_rpc_url="http://localhost:8546",
        own_address=OWN_ADDRESS,
        private_key=PRIVATE_KEY,
        amm_address=AMM_ADDRESS,
        token_address=TOKEN_ADDRESS,
        outbound_bridge_address=OUTBOUND_BRIDGE,
        inbound_bridge_address=INBOUND_BRIDGE,
        event_poll_interval=0.01,
    )
