"""
SwapBridge - Approvals
Lets the AMM spend our tokens

The token -> coin swap pulls tokens through transferFrom, so the AMM needs
an allowance first. Callers run approve() once before the first such swap;
the engine never does it on its own.
"""

import structlog

from swapbridge import abis
from swapbridge.amounts import UINT256_MAX, decode_uint256, is_unlimited
from swapbridge.client import ChainClient, address_topic, bounded, encode_call
from swapbridge.models import SendOptions


logger = structlog.get_logger()


class Approvals:
    """Allowance check and unlimited approval for (owner=us, spender=AMM)"""

    def __init__(
        self,
        client: ChainClient,
        token_address: str,
        amm_address: str,
        gas_price_multiplier: int = 2,
    ):
        self.client = client
        self.token_address = token_address
        self.amm_address = amm_address
        self.gas_price_multiplier = gas_price_multiplier

    async def allowance(self) -> int:
        owner = self.client.account.address
        raw = await self.client.contract_call(
            self.token_address,
            abis.TOKEN_ALLOWANCE,
            [owner, self.amm_address]
        )
        return decode_uint256(raw, f"token {abis.TOKEN_ALLOWANCE} call")

    async def is_approved(self) -> bool:
        """
        True if the AMM's allowance counts as unlimited

        Anything above half of uint256 max qualifies, so an unlimited approval
        that has been partly spent still counts.
        """
        return is_unlimited(await self.allowance())

    async def approve(self, timeout: float) -> None:
        """
        Approve the AMM for the maximum amount and wait for the Approval event

        Submission and the event wait run concurrently and share one
        `timeout` (seconds). Every call submits a new transaction and waits
        for its own event; earlier approvals are not taken into account.

        Raises:
            Timeout: submission and event were not both seen in time
        """
        owner = self.client.account.address
        logger.info("Approving AMM for token spending", owner=owner, spender=self.amm_address)

        try:
            await bounded(self._approve_and_confirm(owner), timeout, "token approval")
        except Exception as e:
            logger.error("Token approval failed", error=str(e))
            raise

        logger.info("✅ AMM approved for unlimited token spending", spender=self.amm_address)

    async def _approve_and_confirm(self, owner: str) -> None:
        # Events from blocks that existed before this call cannot be ours
        from_block = await self.client.block_number() + 1

        payload = encode_call(abis.TOKEN_APPROVE, [self.amm_address, UINT256_MAX])
        tx_hash, event = await self.client.send_and_confirm(
            self.token_address,
            payload,
            0,
            SendOptions(gas_price_multiplier=self.gas_price_multiplier),
            self.token_address,
            abis.TOKEN_APPROVAL_EVENT,
            [address_topic(owner), address_topic(self.amm_address)],
            from_block
        )
        logger.debug("Approval event observed", tx_hash=tx_hash, event_tx=event.tx_hash)
