"""
SwapBridge - Engine
Swap & bridge orchestration for one controlled account

Architecture:
    Quoter    → AMM prices, token balances (read-only)
    Approvals → allowance check, unlimited approval
    Swapper   → quote → bound → submit → confirm
    Bridger   → fire-and-forget bridge transfers

Swaps, approvals and the token side of the bridge run on the base chain;
the coin side of the bridge runs on the secondary chain.
"""

from typing import Optional

import structlog

from swapbridge.account import AccountIdentity
from swapbridge.approvals import Approvals
from swapbridge.bridger import Bridger
from swapbridge.client import ChainClient
from swapbridge.config import BridgeConfig
from swapbridge.quoter import Quoter
from swapbridge.swapper import Swapper


logger = structlog.get_logger()


class SwapBridgeEngine:
    """
    Public surface of the engine

    Components share only read-only configuration. Submissions from one
    engine are serialized per chain by the account identity.
    """

    def __init__(
        self,
        config: BridgeConfig,
        base_client: Optional[ChainClient] = None,
        secondary_client: Optional[ChainClient] = None,
        account: Optional[AccountIdentity] = None,
    ):
        self.config = config

        logger.info("Initializing swap & bridge engine...")

        self.account = account or AccountIdentity(
            config.private_key.get_secret_value(),
            config.own_address
        )

        self.base_client = base_client or ChainClient.connect(
            config.eth_rpc_url,
            self.account,
            "base",
            timeout=config.rpc_timeout,
            event_poll_interval=config.event_poll_interval
        )
        self.secondary_client = secondary_client or ChainClient.connect(
            config.xdai_rpc_url,
            self.account,
            "secondary",
            timeout=config.rpc_timeout,
            event_poll_interval=config.event_poll_interval
        )

        self.quoter = Quoter(self.base_client, config.amm_address, config.token_address)
        self.approvals = Approvals(
            self.base_client,
            config.token_address,
            config.amm_address,
            gas_price_multiplier=config.gas_price_multiplier
        )
        self.swapper = Swapper(
            self.base_client,
            self.quoter,
            config.amm_address,
            gas_price_multiplier=config.gas_price_multiplier,
            gas_limit_headroom=config.swap_gas_limit_headroom
        )
        self.bridger = Bridger(
            self.base_client,
            self.secondary_client,
            config.token_address,
            config.outbound_bridge_address,
            config.inbound_bridge_address,
            secondary_chain_id=config.secondary_chain_id,
            secondary_gas_price_wei=config.secondary_gas_price_wei
        )

        logger.info("Engine initialized", address=self.account.address, amm=config.amm_address)

    @property
    def address(self) -> str:
        return self.account.address

    # ==========================================================================
    # Quotes & balances
    # ==========================================================================

    async def coin_to_token_price(self, amount: int) -> int:
        return await self.quoter.coin_to_token_price(amount)

    async def token_to_coin_price(self, amount: int) -> int:
        return await self.quoter.token_to_coin_price(amount)

    async def token_balance(self, address: Optional[str] = None) -> int:
        """Token balance of `address`, defaulting to our own"""
        return await self.quoter.token_balance(address or self.address)

    # ==========================================================================
    # Approvals
    # ==========================================================================

    async def is_token_approved(self) -> bool:
        return await self.approvals.is_approved()

    async def approve_token(self, timeout: float) -> None:
        """Must run once before the first token -> coin swap"""
        await self.approvals.approve(timeout)

    # ==========================================================================
    # Swaps
    # ==========================================================================

    async def coin_to_token_swap(self, amount: int, timeout_seconds: int) -> int:
        return await self.swapper.coin_to_token_swap(amount, timeout_seconds)

    async def token_to_coin_swap(self, amount: int, timeout_seconds: int) -> int:
        return await self.swapper.token_to_coin_swap(amount, timeout_seconds)

    # ==========================================================================
    # Bridge (fire-and-forget)
    # ==========================================================================

    async def bridge_token_to_secondary(self, amount: int) -> str:
        return await self.bridger.token_to_secondary(amount)

    async def bridge_coin_to_base(self, amount: int) -> str:
        return await self.bridger.coin_to_base(amount)
