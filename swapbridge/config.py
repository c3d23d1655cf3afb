"""
SwapBridge Configuration
Environment-based configuration with validation
"""

from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import Web3


class BridgeConfig(BaseSettings):
    """
    Configuration for the swap & bridge engine
    All values loaded from environment variables
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Node Endpoints
    # ==========================================================================

    eth_rpc_url: str = Field(
        ...,
        description="Base chain (Ethereum) full node URL"
    )

    xdai_rpc_url: str = Field(
        ...,
        description="Secondary chain (xDai) full node URL"
    )

    rpc_timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP request timeout for both nodes, in seconds"
    )

    # ==========================================================================
    # Wallet Configuration
    # ==========================================================================

    own_address: str = Field(
        ...,
        description="Address of the controlled account"
    )

    private_key: SecretStr = Field(
        ...,
        description="Private key signing every state-changing call"
    )

    # ==========================================================================
    # Contract Addresses
    # ==========================================================================

    amm_address: str = Field(
        ...,
        description="Uniswap exchange for the token, on the base chain"
    )

    token_address: str = Field(
        ...,
        description="Stable token (DAI) contract, on the base chain"
    )

    outbound_bridge_address: str = Field(
        ...,
        description="Bridge contract receiving tokens on the base chain"
    )

    inbound_bridge_address: str = Field(
        ...,
        description="Bridge contract receiving native coin on the secondary chain"
    )

    # ==========================================================================
    # Gas Policy
    # ==========================================================================

    gas_price_multiplier: int = Field(
        default=2,
        ge=1,
        description="Multiplier over the suggested gas price for swaps and approvals"
    )

    swap_gas_limit_headroom: int = Field(
        default=60_000,
        ge=0,
        description="Gas added on top of the estimate for swap transactions"
    )

    secondary_chain_id: int = Field(
        default=100,
        description="Network id signed into secondary chain transactions (100 for xDai)"
    )

    secondary_gas_price_wei: int = Field(
        default=10_000_000_000,
        ge=0,
        description="Fixed gas price for secondary chain transfers (10 gwei)"
    )

    # ==========================================================================
    # Event Watching
    # ==========================================================================

    event_poll_interval: float = Field(
        default=2.0,
        gt=0,
        description="Seconds between eth_getLogs polls while waiting for an event"
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator(
        "own_address",
        "amm_address",
        "token_address",
        "outbound_bridge_address",
        "inbound_bridge_address",
    )
    @classmethod
    def _checksum(cls, value: str) -> str:
        if not Web3.is_address(value):
            raise ValueError(f"not an address: {value!r}")
        return Web3.to_checksum_address(value)


def load_config() -> BridgeConfig:
    """Load and validate configuration"""
    from dotenv import load_dotenv

    # Working directory .env first, then the project root
    local_env = Path.cwd() / ".env"
    if local_env.exists():
        load_dotenv(local_env)

    root_env = Path(__file__).parent.parent / ".env"
    if root_env.exists():
        load_dotenv(root_env, override=False)

    return BridgeConfig()
