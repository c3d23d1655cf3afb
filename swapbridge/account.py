"""
SwapBridge - Account Identity
The single controlled account: address, signing key, submission locks
"""

import asyncio
from typing import Dict, Optional

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3


logger = structlog.get_logger()


class AccountIdentity:
    """
    The one account every state-changing call is sent from

    Holds one asyncio.Lock per chain. Nonce lookup, signing and broadcast
    happen under that lock, so two operations on the same engine cannot
    pick the same nonce.
    """

    def __init__(self, private_key: str, address: Optional[str] = None):
        self._account: LocalAccount = Account.from_key(private_key)

        if address is not None and Web3.to_checksum_address(address) != self._account.address:
            raise ValueError(
                f"Configured address {address} does not match the signing key "
                f"({self._account.address})"
            )

        self._locks: Dict[str, asyncio.Lock] = {}

        logger.info("Account identity loaded", address=self._account.address)

    @property
    def address(self) -> str:
        return self._account.address

    def submission_lock(self, chain: str) -> asyncio.Lock:
        """Lock serializing nonce allocation + broadcast on one chain"""
        if chain not in self._locks:
            self._locks[chain] = asyncio.Lock()
        return self._locks[chain]

    def sign_transaction(self, tx: dict):
        """Sign a fully populated transaction dict"""
        return self._account.sign_transaction(tx)

    def __repr__(self) -> str:
        return f"AccountIdentity(address={self.address!r})"
