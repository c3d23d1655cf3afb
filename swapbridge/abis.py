"""
SwapBridge Contract Surface
Function and event signatures the engine encodes against
"""

import re
from typing import List


# =============================================================================
# AMM (Uniswap v1 style exchange)
# =============================================================================

# Read-only pricing
AMM_COIN_TO_TOKEN_PRICE = "getEthToTokenInputPrice(uint256)"
AMM_TOKEN_TO_COIN_PRICE = "getTokenToEthInputPrice(uint256)"

# State-changing swaps
# ethToTokenSwapInput(min_tokens, deadline), payable
AMM_COIN_TO_TOKEN_SWAP = "ethToTokenSwapInput(uint256,uint256)"
# tokenToEthSwapInput(tokens_sold, min_eth, deadline)
AMM_TOKEN_TO_COIN_SWAP = "tokenToEthSwapInput(uint256,uint256,uint256)"

# Events
# TokenPurchase(buyer indexed, eth_sold indexed, tokens_bought indexed)
AMM_TOKEN_PURCHASE_EVENT = "TokenPurchase(address,uint256,uint256)"
# EthPurchase(buyer indexed, tokens_sold indexed, eth_bought indexed)
AMM_ETH_PURCHASE_EVENT = "EthPurchase(address,uint256,uint256)"

# =============================================================================
# ERC-20 TOKEN
# =============================================================================

TOKEN_ALLOWANCE = "allowance(address,address)"
TOKEN_APPROVE = "approve(address,uint256)"
TOKEN_TRANSFER = "transfer(address,uint256)"
TOKEN_BALANCE_OF = "balanceOf(address)"

# Approval(owner indexed, spender indexed, value)
TOKEN_APPROVAL_EVENT = "Approval(address,address,uint256)"


_SIGNATURE_RE = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\((?P<args>.*)\)$")


def argument_types(signature: str) -> List[str]:
    """
    Split a flat signature into its ABI argument types

    Only flat (non-tuple) signatures are supported, which is all
    this contract surface uses.
    """
    match = _SIGNATURE_RE.match(signature.replace(" ", ""))
    if not match:
        raise ValueError(f"Not a function signature: {signature!r}")
    args = match.group("args")
    if "(" in args:
        raise ValueError(f"Tuple arguments are not supported: {signature!r}")
    return [a for a in args.split(",") if a]
