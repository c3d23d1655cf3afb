"""
SwapBridge
Swap a native coin and a stable token on an AMM, and bridge them between chains
"""

from swapbridge.config import BridgeConfig, load_config
from swapbridge.engine import SwapBridgeEngine
from swapbridge.errors import AmountOverflow, MalformedResponse, SwapBridgeError, Timeout
from swapbridge.models import Quote, SendOptions, SwapDirection

__all__ = [
    "AmountOverflow",
    "BridgeConfig",
    "MalformedResponse",
    "Quote",
    "SendOptions",
    "SwapBridgeEngine",
    "SwapBridgeError",
    "SwapDirection",
    "Timeout",
    "load_config",
]

__version__ = "0.1.0"
