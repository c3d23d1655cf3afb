"""
SwapBridge - Errors
Failures raised by the engine itself

Transport failures (web3 / aiohttp) and signing failures (eth-account)
are not part of this taxonomy: they propagate to the caller unchanged.
"""


class SwapBridgeError(Exception):
    """Base class for every error raised by the engine"""


class MalformedResponse(SwapBridgeError):
    """
    A read-only call (or an event) returned data too short to decode
    the expected fixed-width 256-bit value.

    Always fatal to the call that produced it; never retried.
    """

    def __init__(self, what: str, data: bytes):
        self.what = what
        self.data = bytes(data)
        super().__init__(
            f"Malformed output from {what}: expected at least 32 bytes, "
            f"got {len(self.data)} ({self.data.hex() or 'empty'})"
        )


class Timeout(SwapBridgeError):
    """
    A bounded wait for submission + confirmation event elapsed.

    The transaction may still be mined later. Callers that want to retry
    must fetch a fresh quote and deadline.
    """

    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"{operation} did not complete within {seconds}s")


class AmountOverflow(SwapBridgeError, OverflowError):
    """An amount left the uint256 range"""
