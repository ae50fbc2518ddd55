"""Application configuration using pydantic-settings.

Per-chain RPC endpoints and credentials for Base, Scroll and Starknet, plus
server-wide swap defaults (slippage, gas price multiplier, confirmation timeout).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def mask_secret(secret: Optional[str]) -> str:
    """Mask a credential as first 4 chars + **** + last 4 chars."""
    if not secret:
        return "(not set)"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}****{secret[-4:]}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Chain RPC Endpoints & Credentials
    # ======================
    base_rpc_url: str = Field(default="", description="Base RPC URL")
    base_private_key: str = Field(default="", description="Base wallet private key")

    scroll_rpc_url: str = Field(default="", description="Scroll RPC URL")
    scroll_private_key: str = Field(default="", description="Scroll wallet private key")

    starknet_rpc_url: str = Field(default="", description="Starknet RPC URL")
    starknet_private_key: str = Field(default="", description="Starknet account private key")
    starknet_public_key: str = Field(
        default="", description="Starknet deployed account address"
    )

    # ======================
    # Swap Defaults
    # ======================
    default_slippage: float = Field(
        default=1.0, ge=0.01, le=50, description="Default slippage tolerance in percent"
    )
    gas_price_multiplier: float = Field(
        default=1.2, ge=1.0, le=5.0, description="Multiplier applied to network gas price"
    )
    transaction_timeout: int = Field(
        default=300, ge=30, le=3600, description="Seconds to wait for a confirmation"
    )

    # ======================
    # Fibrous API
    # ======================
    fibrous_api_key: Optional[str] = Field(default=None, description="Fibrous API key")
    fibrous_api_url: str = Field(
        default="https://api.fibrous.finance", description="Fibrous router API URL"
    )
    fibrous_graph_url: str = Field(
        default="https://graph.fibrous.finance", description="Fibrous graph API URL"
    )
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    # ======================
    # Logging
    # ======================
    log_level: str = Field(default="INFO", description="Root log level")

    def get_chain_credentials(self, chain: str) -> tuple[str, str, Optional[str]]:
        """Get (rpc_url, private_key, public_key) for a chain.

        The public key is only meaningful for Starknet and is None elsewhere.
        """
        chain = chain.lower()
        if chain == "base":
            return self.base_rpc_url, self.base_private_key, None
        if chain == "scroll":
            return self.scroll_rpc_url, self.scroll_private_key, None
        if chain == "starknet":
            return self.starknet_rpc_url, self.starknet_private_key, self.starknet_public_key
        return "", "", None

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "default_slippage": self.default_slippage,
            "gas_price_multiplier": self.gas_price_multiplier,
            "transaction_timeout": self.transaction_timeout,
            "fibrous_api_url": self.fibrous_api_url,
            "fibrous_api_key": "Set" if self.fibrous_api_key else "Not set",
            "chains": {
                "base": {
                    "rpc": self.base_rpc_url or "(not set)",
                    "private_key": mask_secret(self.base_private_key),
                },
                "scroll": {
                    "rpc": self.scroll_rpc_url or "(not set)",
                    "private_key": mask_secret(self.scroll_private_key),
                },
                "starknet": {
                    "rpc": self.starknet_rpc_url or "(not set)",
                    "private_key": mask_secret(self.starknet_private_key),
                    "public_key": mask_secret(self.starknet_public_key),
                },
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
