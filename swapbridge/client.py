"""
SwapBridge - Chain Client
One node connection plus the primitives every component is built on:
read-only calls, signed submission, event waiting, and the
join / timeout helpers that race them.
"""

import asyncio
from typing import Any, Awaitable, List, Optional, Sequence, Tuple

import structlog
from aiohttp import ClientTimeout
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector
from web3 import AsyncWeb3, Web3

from swapbridge.abis import argument_types
from swapbridge.account import AccountIdentity
from swapbridge.errors import Timeout
from swapbridge.models import Block, ConfirmationEvent, SendOptions


logger = structlog.get_logger()


# =============================================================================
# ABI helpers
# =============================================================================

def encode_call(signature: str, args: Sequence[Any]) -> bytes:
    """4-byte selector followed by the ABI-encoded arguments"""
    types = argument_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} takes {len(types)} arguments, got {len(args)}")
    return function_signature_to_4byte_selector(signature) + encode(types, list(args))


def event_topic(signature: str) -> bytes:
    """topic0 for an event signature"""
    return bytes(Web3.keccak(text=signature))


def address_topic(address: str) -> bytes:
    """An address left-padded to a 32-byte indexed topic"""
    return encode(["address"], [Web3.to_checksum_address(address)])


def _same_hash(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


# =============================================================================
# Concurrency primitives
# =============================================================================

async def join(*aws: Awaitable) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    Fails as soon as any of them fails: the remaining ones are cancelled
    and the first error is raised. Cancelling the join cancels them all.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        errors = [t.exception() for t in tasks if t in done and not t.cancelled()]
        for error in errors:
            if error is not None:
                raise error
        return [t.result() for t in tasks]
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def bounded(aw: Awaitable, timeout: float, operation: str) -> Any:
    """
    Await `aw` for at most `timeout` seconds.

    Expiry cancels the work and raises Timeout. Errors raised by the work
    itself (including transport timeouts) propagate unchanged.
    """
    task = asyncio.ensure_future(aw)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    if task not in done:
        logger.warning("⏱️ Operation timed out", operation=operation, timeout=timeout)
        raise Timeout(operation, timeout)
    return task.result()


# =============================================================================
# Chain client
# =============================================================================

class ChainClient:
    """
    Node connection for one chain

    Shared by all components working on that chain. Holds no mutable
    state apart from the web3 connection itself; nonce ordering is
    delegated to the account's per-chain submission lock.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        account: AccountIdentity,
        name: str,
        event_poll_interval: float = 2.0,
    ):
        self.w3 = w3
        self.account = account
        self.name = name
        self.event_poll_interval = event_poll_interval

    @classmethod
    def connect(
        cls,
        rpc_url: str,
        account: AccountIdentity,
        name: str,
        timeout: float = 10.0,
        event_poll_interval: float = 2.0,
    ) -> "ChainClient":
        """Build a client over an HTTP node endpoint"""
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": ClientTimeout(total=timeout)}
        ))
        logger.info("Chain client configured", chain=name, rpc_url=rpc_url)
        return cls(w3, account, name, event_poll_interval=event_poll_interval)

    # ---- Reads ---------------------------------------------------------------

    async def block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def latest_block(self) -> Block:
        block = await self.w3.eth.get_block("latest")
        return Block(number=int(block["number"]), timestamp=int(block["timestamp"]))

    async def contract_call(self, to: str, signature: str, args: Sequence[Any]) -> bytes:
        """Read-only eth_call from our own address; returns the raw bytes"""
        result = await self.w3.eth.call({
            "to": Web3.to_checksum_address(to),
            "from": self.account.address,
            "data": Web3.to_hex(encode_call(signature, args)),
        })
        return bytes(result)

    # ---- Writes --------------------------------------------------------------

    async def send_transaction(
        self,
        to: str,
        data: bytes = b"",
        value: int = 0,
        options: SendOptions = SendOptions(),
    ) -> str:
        """
        Sign and broadcast a transaction from our account

        Args:
            to: Recipient / contract address
            data: Call payload (empty for a plain transfer)
            value: Native coin attached, in wei
            options: Gas price, gas limit and network id policy

        Returns:
            0x-prefixed transaction hash once the node accepted it
        """
        eth = self.w3.eth
        sender = self.account.address

        async with self.account.submission_lock(self.name):
            tx = {
                "from": sender,
                "to": Web3.to_checksum_address(to),
                "value": int(value),
                "data": Web3.to_hex(data),
                "nonce": await eth.get_transaction_count(sender, "pending"),
            }

            if options.gas_price is not None:
                tx["gasPrice"] = int(options.gas_price)
            else:
                tx["gasPrice"] = int(await eth.gas_price) * options.gas_price_multiplier

            if options.network_id is not None:
                tx["chainId"] = int(options.network_id)
            else:
                tx["chainId"] = int(await eth.chain_id)

            if options.gas_limit is not None:
                tx["gas"] = int(options.gas_limit)
            else:
                tx["gas"] = int(await eth.estimate_gas(tx)) + options.gas_limit_headroom

            signed = self.account.sign_transaction(tx)
            tx_hash = Web3.to_hex(await eth.send_raw_transaction(signed.raw_transaction))

        logger.info(
            "Transaction broadcast",
            chain=self.name,
            tx_hash=tx_hash,
            to=tx["to"],
            nonce=tx["nonce"],
            gas=tx["gas"],
            gas_price=tx["gasPrice"]
        )
        return tx_hash

    # ---- Events --------------------------------------------------------------

    async def wait_for_event(
        self,
        address: str,
        event_signature: str,
        topics: Sequence[Optional[bytes]] = (),
        from_block: int = 0,
        tx_hash: Optional[str] = None,
    ) -> ConfirmationEvent:
        """
        Poll eth_getLogs until a log matches, starting at `from_block`

        `topics` filter the indexed arguments after topic0; None matches
        anything. With `tx_hash`, only a log emitted by that transaction
        matches. This never gives up on its own; wrap it with bounded().
        """
        address = Web3.to_checksum_address(address)
        topic_filter: List[Optional[str]] = [Web3.to_hex(event_topic(event_signature))]
        topic_filter += [Web3.to_hex(t) if t is not None else None for t in topics]
        while topic_filter[-1] is None:
            topic_filter.pop()

        logger.debug(
            "Waiting for event",
            chain=self.name,
            event_signature=event_signature,
            address=address,
            from_block=from_block,
            tx_hash=tx_hash
        )

        while True:
            head = await self.block_number()
            if head >= from_block:
                logs = await self.w3.eth.get_logs({
                    "address": address,
                    "fromBlock": from_block,
                    "toBlock": head,
                    "topics": topic_filter,
                })
                for log in logs:
                    event = self._to_event(log)
                    if tx_hash is None or _same_hash(event.tx_hash, tx_hash):
                        return event
                # Nothing up to head matched; later polls only look at new blocks
                from_block = head + 1
            await asyncio.sleep(self.event_poll_interval)

    async def send_and_confirm(
        self,
        to: str,
        data: bytes,
        value: int,
        options: SendOptions,
        event_address: str,
        event_signature: str,
        topics: Sequence[Optional[bytes]],
        from_block: int,
    ) -> Tuple[str, ConfirmationEvent]:
        """
        Submit a transaction and wait for the event it emits

        Submission and the event wait run concurrently. An event matching
        the filter but emitted by another transaction (e.g. an earlier one
        that was mined late) does not count; polling continues until our
        own transaction's event shows up.

        Returns:
            (tx_hash, event) with event.tx_hash == tx_hash
        """
        tx_hash, event = await join(
            self.send_transaction(to, data, value, options),
            self.wait_for_event(event_address, event_signature, topics, from_block=from_block),
        )

        if not _same_hash(event.tx_hash, tx_hash):
            logger.warning(
                "Ignoring event from another transaction",
                chain=self.name,
                event_signature=event_signature,
                tx_hash=tx_hash,
                event_tx=event.tx_hash
            )
            event = await self.wait_for_event(
                event_address,
                event_signature,
                topics,
                from_block=from_block,
                tx_hash=tx_hash
            )

        return tx_hash, event

    @staticmethod
    def _to_event(log) -> ConfirmationEvent:
        tx_hash = log.get("transactionHash")
        block_number = log.get("blockNumber")
        return ConfirmationEvent(
            address=Web3.to_checksum_address(log["address"]),
            topics=tuple(bytes(t) for t in log["topics"]),
            tx_hash=Web3.to_hex(tx_hash) if tx_hash is not None else None,
            block_number=int(block_number) if block_number is not None else None,
            data=bytes(log.get("data") or b""),
        )
