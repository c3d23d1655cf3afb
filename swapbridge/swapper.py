"""
SwapBridge - Swap Executor
Quote, bound, submit, and confirm a swap on the AMM

A swap only counts once the AMM's purchase event for our address has
been seen. The realised output is read from that event, not from the quote.
"""

import structlog

from swapbridge import amounts
from swapbridge.amounts import require_uint256, topic_uint256
from swapbridge.client import ChainClient, address_topic, bounded, encode_call, join
from swapbridge.models import SendOptions, SwapDirection
from swapbridge.quoter import Quoter


logger = structlog.get_logger()

# Indexed output amount in TokenPurchase / EthPurchase
PURCHASE_OUTPUT_TOPIC = 3


class Swapper:
    """
    Swap executor for both directions

    Flow per call:
        1. Read latest block and quote concurrently
        2. min_output = (quote // 40) * 39, deadline = block time + timeout
        3. Submit the swap and wait for the purchase event concurrently
        4. Return the amount reported by the event

    The whole call is bounded by its timeout. There is no retry.
    """

    def __init__(
        self,
        client: ChainClient,
        quoter: Quoter,
        amm_address: str,
        gas_price_multiplier: int = 2,
        gas_limit_headroom: int = 60_000,
    ):
        self.client = client
        self.quoter = quoter
        self.amm_address = amm_address
        self.send_options = SendOptions(
            gas_price_multiplier=gas_price_multiplier,
            gas_limit_headroom=gas_limit_headroom
        )

    async def swap(self, direction: SwapDirection, amount: int, timeout_seconds: int) -> int:
        """
        Sell `amount` of the source asset on the AMM

        Args:
            direction: COIN_TO_TOKEN attaches `amount` as value;
                       TOKEN_TO_COIN needs a prior approval
            amount: Amount of the source asset, in base units
            timeout_seconds: Caller-side bound and on-chain deadline offset

        Returns:
            Output amount actually received, from the purchase event

        Raises:
            Timeout: the purchase event was not seen in time
            MalformedResponse: quote or event could not be decoded
        """
        amount = require_uint256(amount)
        if isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, int) or timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be a positive int, got {timeout_seconds!r}")

        logger.info(
            "Starting swap",
            direction=direction.value,
            amount=amount,
            timeout=timeout_seconds
        )

        try:
            received = await bounded(
                self._execute(direction, amount, timeout_seconds),
                timeout_seconds,
                f"{direction.value} swap"
            )
        except Exception as e:
            logger.error("Swap failed", direction=direction.value, amount=amount, error=str(e))
            raise

        logger.info("✅ Swap confirmed", direction=direction.value, amount_in=amount, amount_out=received)
        return received

    async def coin_to_token_swap(self, amount: int, timeout_seconds: int) -> int:
        return await self.swap(SwapDirection.COIN_TO_TOKEN, amount, timeout_seconds)

    async def token_to_coin_swap(self, amount: int, timeout_seconds: int) -> int:
        return await self.swap(SwapDirection.TOKEN_TO_COIN, amount, timeout_seconds)

    async def _execute(self, direction: SwapDirection, amount: int, timeout_seconds: int) -> int:
        block, quoted = await join(
            self.client.latest_block(),
            self.quoter.price(direction, amount),
        )

        min_out = amounts.min_output(quoted)
        deadline = amounts.deadline(block.timestamp, timeout_seconds)

        if direction.spends_coin:
            payload = encode_call(direction.swap_signature, [min_out, deadline])
            value = amount
        else:
            payload = encode_call(direction.swap_signature, [amount, min_out, deadline])
            value = 0

        logger.info(
            "Submitting swap",
            direction=direction.value,
            quoted=quoted,
            min_output=min_out,
            deadline=deadline,
            block=block.number
        )

        own = self.client.account.address
        tx_hash, event = await self.client.send_and_confirm(
            self.amm_address,
            payload,
            value,
            self.send_options,
            self.amm_address,
            direction.purchase_event,
            [address_topic(own)],
            block.number + 1
        )

        received = topic_uint256(event.topics, PURCHASE_OUTPUT_TOPIC, direction.purchase_event)
        logger.debug("Purchase event observed", tx_hash=tx_hash, event_tx=event.tx_hash, received=received)
        return received
