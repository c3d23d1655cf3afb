"""Tests for the swap executor."""

import pytest
from web3 import Web3

from conftest import (
    AMM_ADDRESS,
    OWN_ADDRESS,
    TOKEN_ADDRESS,
    decode_args,
    emit_on_send,
    hang_forever,
    make_log,
    selector,
    word,
)
from swapbridge import abis
from swapbridge.client import address_topic
from swapbridge.errors import MalformedResponse, Timeout
from swapbridge.quoter import Quoter
from swapbridge.swapper import Swapper


@pytest.fixture
def swapper(client):
    quoter = Quoter(client, AMM_ADDRESS, TOKEN_ADDRESS)
    return Swapper(client, quoter, AMM_ADDRESS, gas_price_multiplier=2, gas_limit_headroom=60_000)


def purchase_hook(eth, event, received, recipient=OWN_ADDRESS):
    return emit_on_send(
        eth, AMM_ADDRESS, event,
        [address_topic(recipient), word(1), word(received)]
    )


class TestCoinToTokenSwap:
    """Tests for coin -> token swaps."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, swapper, eth, account):
        """Quote 4000, bound 3900, event reports 3950: the call returns 3950."""
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        eth.on_send = purchase_hook(eth, abis.AMM_TOKEN_PURCHASE_EVENT, 3950)

        received = await swapper.coin_to_token_swap(10**16, 60)
        assert received == 3950

        tx = account.signed[0]
        assert tx["to"] == AMM_ADDRESS
        assert tx["value"] == 10**16
        assert tx["data"].startswith(selector(abis.AMM_COIN_TO_TOKEN_SWAP))
        min_tokens, deadline = decode_args(["uint256", "uint256"], tx["data"])
        assert min_tokens == 3900
        assert deadline == eth.timestamp + 60

    @pytest.mark.asyncio
    async def test_gas_policy(self, swapper, eth, account):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        eth.on_send = purchase_hook(eth, abis.AMM_TOKEN_PURCHASE_EVENT, 3900)

        await swapper.coin_to_token_swap(1, 60)

        tx = account.signed[0]
        assert tx["gasPrice"] == 2 * eth.gas_price_value
        assert tx["gas"] == eth.estimate + 60_000

    @pytest.mark.asyncio
    async def test_event_filtered_on_recipient_from_next_block(self, swapper, eth):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        start = eth.head
        eth.on_send = purchase_hook(eth, abis.AMM_TOKEN_PURCHASE_EVENT, 3900)

        await swapper.coin_to_token_swap(1, 60)

        query = eth.log_queries[-1]
        assert query["address"] == AMM_ADDRESS
        assert query["fromBlock"] == start + 1
        assert len(query["topics"]) == 2
        assert query["topics"][1].lower().endswith(OWN_ADDRESS[2:].lower())

    @pytest.mark.asyncio
    async def test_truncated_bound(self, swapper, eth, account):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(39))
        eth.on_send = purchase_hook(eth, abis.AMM_TOKEN_PURCHASE_EVENT, 39)

        assert await swapper.coin_to_token_swap(1, 60) == 39
        min_tokens, _ = decode_args(["uint256", "uint256"], account.signed[0]["data"])
        assert min_tokens == 0


class TestTokenToCoinSwap:
    """Tests for token -> coin swaps."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, swapper, eth, account):
        eth.set_call(abis.AMM_TOKEN_TO_COIN_PRICE, word(10**18))
        eth.on_send = purchase_hook(eth, abis.AMM_ETH_PURCHASE_EVENT, 99 * 10**16)

        received = await swapper.token_to_coin_swap(5 * 10**18, 120)
        assert received == 99 * 10**16

        tx = account.signed[0]
        assert tx["value"] == 0
        assert tx["data"].startswith(selector(abis.AMM_TOKEN_TO_COIN_SWAP))
        sold, min_eth, deadline = decode_args(["uint256", "uint256", "uint256"], tx["data"])
        assert sold == 5 * 10**18
        assert min_eth == (10**18 // 40) * 39
        assert deadline == eth.timestamp + 120

    @pytest.mark.asyncio
    async def test_token_purchase_event_does_not_confirm(self, swapper, eth):
        """Only EthPurchase confirms a token -> coin swap."""
        eth.set_call(abis.AMM_TOKEN_TO_COIN_PRICE, word(100))
        eth.on_send = purchase_hook(eth, abis.AMM_TOKEN_PURCHASE_EVENT, 100)

        with pytest.raises(Timeout):
            await swapper.token_to_coin_swap(1, 1)


class TestSwapFailures:
    """Tests for timeouts and malformed data."""

    @pytest.mark.asyncio
    async def test_timeout_when_event_never_arrives(self, swapper, eth):
        """The transaction is accepted but no event shows up."""
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))

        with pytest.raises(Timeout):
            await swapper.coin_to_token_swap(1, 1)
        assert len(eth.sent) == 1

    @pytest.mark.asyncio
    async def test_timeout_when_event_for_someone_else(self, swapper, eth):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        eth.on_send = purchase_hook(eth, abis.AMM_TOKEN_PURCHASE_EVENT, 3950, recipient=TOKEN_ADDRESS)

        with pytest.raises(Timeout):
            await swapper.coin_to_token_swap(1, 1)

    @pytest.mark.asyncio
    async def test_timeout_when_submission_hangs(self, swapper, eth):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        eth.on_send = hang_forever

        with pytest.raises(Timeout):
            await swapper.coin_to_token_swap(1, 1)

    @pytest.mark.asyncio
    async def test_malformed_quote_sends_nothing(self, swapper, eth):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, bytes(31))

        with pytest.raises(MalformedResponse):
            await swapper.coin_to_token_swap(1, 60)
        assert eth.sent == []

    @pytest.mark.asyncio
    async def test_event_without_amount_topic(self, swapper, eth):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        eth.on_send = emit_on_send(
            eth, AMM_ADDRESS, abis.AMM_TOKEN_PURCHASE_EVENT, [address_topic(OWN_ADDRESS)]
        )

        with pytest.raises(MalformedResponse):
            await swapper.coin_to_token_swap(1, 60)

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self, swapper, eth):
        async def reject(raw):
            raise ConnectionError("node unreachable")

        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))
        eth.on_send = reject

        with pytest.raises(ConnectionError):
            await swapper.coin_to_token_swap(1, 60)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout", [0, -1, 1.5])
    async def test_invalid_timeout(self, swapper, eth, timeout):
        with pytest.raises(ValueError):
            await swapper.coin_to_token_swap(1, timeout)
        assert eth.calls == []


class TestConfirmationCorrelation:
    """A purchase event only confirms the swap that emitted it."""

    @pytest.mark.asyncio
    async def test_event_from_earlier_swap_does_not_confirm(self, swapper, eth):
        """A late-mined earlier swap for us must not stand in for this one."""
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))

        async def mine_only_stale(raw):
            eth.head += 1
            eth.logs.append(make_log(
                AMM_ADDRESS, abis.AMM_TOKEN_PURCHASE_EVENT,
                [address_topic(OWN_ADDRESS), word(1), word(12345)],
                eth.head, tx_hash=b"\xaa" * 32
            ))

        eth.on_send = mine_only_stale

        with pytest.raises(Timeout):
            await swapper.coin_to_token_swap(1, 1)

    @pytest.mark.asyncio
    async def test_returns_amount_from_own_event(self, swapper, eth):
        eth.set_call(abis.AMM_COIN_TO_TOKEN_PRICE, word(4000))

        async def stale_then_own(raw):
            eth.head += 1
            eth.logs.append(make_log(
                AMM_ADDRESS, abis.AMM_TOKEN_PURCHASE_EVENT,
                [address_topic(OWN_ADDRESS), word(1), word(12345)],
                eth.head, tx_hash=b"\xaa" * 32
            ))
            eth.head += 1
            eth.logs.append(make_log(
                AMM_ADDRESS, abis.AMM_TOKEN_PURCHASE_EVENT,
                [address_topic(OWN_ADDRESS), word(1), word(3950)],
                eth.head, tx_hash=bytes(Web3.keccak(raw))
            ))

        eth.on_send = stale_then_own

        assert await swapper.coin_to_token_swap(1, 5) == 3950
