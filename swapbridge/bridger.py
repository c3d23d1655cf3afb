"""
SwapBridge - Bridge Transferer
Moves funds between the base and secondary chains

Both directions are fire-and-forget. The bridge settlement events are not
indexed in a way we can filter on, so "success" only means the node accepted
the transaction. Confirm arrival out-of-band, e.g. by polling balances.
"""

import structlog

from swapbridge import abis
from swapbridge.amounts import require_uint256
from swapbridge.client import ChainClient, encode_call
from swapbridge.models import SendOptions


logger = structlog.get_logger()


class Bridger:
    """
    Bridge transfers

    - token_to_secondary() - token transfer to the outbound bridge (base chain)
    - coin_to_base() - plain value transfer to the inbound bridge (secondary chain)
    """

    def __init__(
        self,
        base_client: ChainClient,
        secondary_client: ChainClient,
        token_address: str,
        outbound_bridge_address: str,
        inbound_bridge_address: str,
        secondary_chain_id: int = 100,
        secondary_gas_price_wei: int = 10_000_000_000,
    ):
        self.base_client = base_client
        self.secondary_client = secondary_client
        self.token_address = token_address
        self.outbound_bridge_address = outbound_bridge_address
        self.inbound_bridge_address = inbound_bridge_address
        self.secondary_options = SendOptions(
            gas_price=secondary_gas_price_wei,
            network_id=secondary_chain_id
        )

    async def token_to_secondary(self, amount: int) -> str:
        """
        Send `amount` tokens to the outbound bridge

        Returns:
            Transaction hash. Does NOT mean the funds arrived.
        """
        amount = require_uint256(amount)
        payload = encode_call(abis.TOKEN_TRANSFER, [self.outbound_bridge_address, amount])

        try:
            tx_hash = await self.base_client.send_transaction(self.token_address, payload, 0)
        except Exception as e:
            logger.error("Outbound bridge transfer failed", amount=amount, error=str(e))
            raise

        logger.warning(
            "🌉 Outbound bridge transfer submitted - settlement not tracked",
            tx_hash=tx_hash,
            amount=amount,
            bridge=self.outbound_bridge_address
        )
        return tx_hash

    async def coin_to_base(self, amount: int) -> str:
        """
        Send `amount` native coin on the secondary chain to the inbound bridge

        Uses the fixed gas price and explicit network id the secondary
        chain requires.

        Returns:
            Transaction hash. Does NOT mean the funds arrived.
        """
        amount = require_uint256(amount)

        try:
            tx_hash = await self.secondary_client.send_transaction(
                self.inbound_bridge_address,
                b"",
                amount,
                self.secondary_options
            )
        except Exception as e:
            logger.error("Inbound bridge transfer failed", amount=amount, error=str(e))
            raise

        logger.warning(
            "🌉 Inbound bridge transfer submitted - settlement not tracked",
            tx_hash=tx_hash,
            amount=amount,
            bridge=self.inbound_bridge_address
        )
        return tx_hash
