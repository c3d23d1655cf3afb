"""
SwapBridge - Data Model
Value types shared by the engine components
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from swapbridge import abis


class SwapDirection(Enum):
    """Which asset is spent on the AMM"""
    COIN_TO_TOKEN = "coin-to-token"
    TOKEN_TO_COIN = "token-to-coin"

    @property
    def price_signature(self) -> str:
        if self is SwapDirection.COIN_TO_TOKEN:
            return abis.AMM_COIN_TO_TOKEN_PRICE
        return abis.AMM_TOKEN_TO_COIN_PRICE

    @property
    def swap_signature(self) -> str:
        if self is SwapDirection.COIN_TO_TOKEN:
            return abis.AMM_COIN_TO_TOKEN_SWAP
        return abis.AMM_TOKEN_TO_COIN_SWAP

    @property
    def purchase_event(self) -> str:
        if self is SwapDirection.COIN_TO_TOKEN:
            return abis.AMM_TOKEN_PURCHASE_EVENT
        return abis.AMM_ETH_PURCHASE_EVENT

    @property
    def spends_coin(self) -> bool:
        return self is SwapDirection.COIN_TO_TOKEN


@dataclass(frozen=True)
class Quote:
    """
    AMM price for an input amount

    Only valid at `block_number`; it carries no expiry of its own.
    """
    direction: SwapDirection
    amount_in: int
    amount_out: int
    block_number: int


@dataclass(frozen=True)
class Block:
    number: int
    timestamp: int


@dataclass(frozen=True)
class SendOptions:
    """
    Per-call gas policy

    gas_price wins over gas_price_multiplier; gas_limit wins over
    gas_limit_headroom. network_id overrides the node-reported chain id.
    """
    gas_price_multiplier: int = 1
    gas_price: Optional[int] = None
    gas_limit: Optional[int] = None
    gas_limit_headroom: int = 0
    network_id: Optional[int] = None


@dataclass(frozen=True)
class ConfirmationEvent:
    """A log matched by address, event signature and indexed topics"""
    address: str
    topics: Tuple[bytes, ...]
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    data: bytes = field(default=b"", repr=False)
