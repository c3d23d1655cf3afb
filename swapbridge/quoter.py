"""
SwapBridge - Quote Reader
Read-only AMM pricing and token balances
"""

import structlog

from swapbridge import abis
from swapbridge.amounts import decode_uint256, require_uint256
from swapbridge.client import ChainClient, join
from swapbridge.models import Quote, SwapDirection


logger = structlog.get_logger()


class Quoter:
    """
    Read-only views on the base chain

    - price() / quote() - AMM input price in either direction
    - token_balance() - token balance of any address

    Nothing here signs or sends; calls can run concurrently.
    """

    def __init__(self, client: ChainClient, amm_address: str, token_address: str):
        self.client = client
        self.amm_address = amm_address
        self.token_address = token_address

    async def price(self, direction: SwapDirection, amount: int) -> int:
        """
        Output the AMM would give for `amount` of the source asset

        Args:
            direction: Which asset is being sold
            amount: Input amount in base units

        Returns:
            Quoted output amount in base units of the other asset
        """
        amount = require_uint256(amount)
        signature = direction.price_signature
        raw = await self.client.contract_call(self.amm_address, signature, [amount])
        quoted = decode_uint256(raw, f"AMM {signature} call")

        logger.debug("AMM price", direction=direction.value, amount_in=amount, amount_out=quoted)
        return quoted

    async def quote(self, direction: SwapDirection, amount: int) -> Quote:
        """Price plus the block height it was read at"""
        block_number, quoted = await join(
            self.client.block_number(),
            self.price(direction, amount),
        )
        return Quote(
            direction=direction,
            amount_in=amount,
            amount_out=quoted,
            block_number=block_number
        )

    async def coin_to_token_price(self, amount: int) -> int:
        return await self.price(SwapDirection.COIN_TO_TOKEN, amount)

    async def token_to_coin_price(self, amount: int) -> int:
        return await self.price(SwapDirection.TOKEN_TO_COIN, amount)

    async def token_balance(self, address: str) -> int:
        """Token balance of `address` (not necessarily ours)"""
        raw = await self.client.contract_call(self.token_address, abis.TOKEN_BALANCE_OF, [address])
        return decode_uint256(raw, f"token {abis.TOKEN_BALANCE_OF} call")
