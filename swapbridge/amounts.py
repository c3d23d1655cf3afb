"""
SwapBridge - Amounts
uint256 arithmetic for on-chain quantities

Python ints never wrap, so every helper here checks the result against
the uint256 range and raises instead.
"""

from typing import Sequence

from swapbridge.errors import AmountOverflow, MalformedResponse


UINT256_MAX = 2**256 - 1

# An allowance above this is treated as "unlimited"
UNLIMITED_ALLOWANCE_THRESHOLD = UINT256_MAX // 2

# Slippage: accept 39/40 of the quote (2.5% tolerance)
SLIPPAGE_DIVISOR = 40
SLIPPAGE_MULTIPLIER = 39

WORD_SIZE = 32


def require_uint256(value: int, name: str = "amount") -> int:
    """Validate that `value` is an int inside [0, UINT256_MAX]"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    if value > UINT256_MAX:
        raise AmountOverflow(f"{name} exceeds uint256: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    result = require_uint256(a, "lhs") + require_uint256(b, "rhs")
    if result > UINT256_MAX:
        raise AmountOverflow(f"uint256 addition overflow: {a} + {b}")
    return result


def checked_mul(a: int, b: int) -> int:
    result = require_uint256(a, "lhs") * require_uint256(b, "rhs")
    if result > UINT256_MAX:
        raise AmountOverflow(f"uint256 multiplication overflow: {a} * {b}")
    return result


def min_output(quoted: int) -> int:
    """
    Slippage-protected minimum output for a quote.

    Divides before multiplying, so the result truncates:
        min_output(4000) == 3900
        min_output(39) == 0
    """
    quoted = require_uint256(quoted, "quoted")
    return checked_mul(quoted // SLIPPAGE_DIVISOR, SLIPPAGE_MULTIPLIER)


def deadline(now_timestamp: int, timeout_seconds: int) -> int:
    """On-chain deadline: latest block timestamp + timeout"""
    return checked_add(now_timestamp, timeout_seconds)


def is_unlimited(allowance: int) -> bool:
    return require_uint256(allowance, "allowance") > UNLIMITED_ALLOWANCE_THRESHOLD


def decode_uint256(data: bytes, what: str) -> int:
    """
    Decode the first 32 bytes of a call result as a big-endian uint256.

    Raises MalformedResponse when fewer than 32 bytes came back.
    """
    data = bytes(data)
    if len(data) < WORD_SIZE:
        raise MalformedResponse(what, data)
    return int.from_bytes(data[:WORD_SIZE], "big")


def topic_uint256(topics: Sequence[bytes], index: int, what: str) -> int:
    """Decode an indexed uint256 event argument from a log's topics"""
    if len(topics) <= index:
        raise MalformedResponse(f"{what} (topic {index} missing)", b"")
    return decode_uint256(topics[index], what)
