"""Supported chains and per-chain wallet configuration.

Supports 3 chains with two transaction models:
- Base, Scroll: EVM accounts (address derived from private key, gas auction)
- Starknet: account abstraction (deployed account contract, fee estimation)
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from fibrous_mcp.config import Settings, get_settings, mask_secret
from fibrous_mcp.errors import ConfigMissingError, UnsupportedChainError

logger = logging.getLogger(__name__)


class ChainFamily(str, Enum):
    """Transaction model of a chain."""

    EVM = "evm"
    STARKNET = "starknet"


@dataclass(frozen=True)
class ChainSpec:
    """Static metadata for a supported chain."""

    name: str
    display_name: str
    family: ChainFamily
    explorer_tx_url: str
    evm_chain_id: Optional[int] = None  # EVM chains only

    def explorer_url(self, tx_hash: str) -> str:
        return f"{self.explorer_tx_url}/{tx_hash}"


# ======================
# Chain Table
# ======================

CHAINS: dict[str, ChainSpec] = {
    "base": ChainSpec(
        name="base",
        display_name="Base",
        family=ChainFamily.EVM,
        explorer_tx_url="https://basescan.org/tx",
        evm_chain_id=8453,
    ),
    "starknet": ChainSpec(
        name="starknet",
        display_name="Starknet",
        family=ChainFamily.STARKNET,
        explorer_tx_url="https://starkscan.co/tx",
    ),
    "scroll": ChainSpec(
        name="scroll",
        display_name="Scroll",
        family=ChainFamily.EVM,
        explorer_tx_url="https://scrollscan.com/tx",
        evm_chain_id=534352,
    ),
}

SUPPORTED_CHAINS: tuple[str, ...] = tuple(CHAINS)


def get_chain_spec(chain_name: str) -> ChainSpec:
    """Look up a chain by name, raising UnsupportedChainError if unknown."""
    spec = CHAINS.get(chain_name)
    if spec is None:
        raise UnsupportedChainError(chain_name, SUPPORTED_CHAINS)
    return spec


# ======================
# Wallet Configuration
# ======================

PLACEHOLDER_VALUES = ("", "0x...", "YOUR_PRIVATE_KEY", "YOUR_PUBLIC_KEY")
MIN_PRIVATE_KEY_LENGTH = 32

_HEX_RE = re.compile(r"0x[a-fA-F0-9]+")


@dataclass(frozen=True)
class ChainConfig:
    """Credentials for one chain. Never mutated after construction."""

    rpc_url: str
    private_key: str = field(repr=False)
    public_key: Optional[str] = None  # Starknet account address only

    def __repr__(self) -> str:
        return (
            f"ChainConfig(rpc_url={self.rpc_url!r}, "
            f"private_key={mask_secret(self.private_key)!r}, "
            f"public_key={self.public_key!r})"
        )


@dataclass
class ValidationResult:
    """Non-throwing validation outcome."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))


def _validate_rpc_url(rpc_url: str, chain_name: str) -> list[str]:
    if not rpc_url:
        return [f"RPC URL is required for {chain_name}"]

    parsed = urlparse(rpc_url)
    if not parsed.scheme or not parsed.netloc:
        return [f"RPC URL for {chain_name} is not a valid URL"]
    if parsed.scheme not in ("http", "https"):
        return [f"RPC URL for {chain_name} must use HTTP or HTTPS protocol"]
    return []


def _validate_private_key(private_key: str, chain_name: str) -> list[str]:
    if not private_key:
        return [f"Private key is required for {chain_name}"]

    if private_key in PLACEHOLDER_VALUES:
        return [f"Private key for {chain_name} appears to be placeholder value"]

    errors = []
    if len(private_key) < MIN_PRIVATE_KEY_LENGTH:
        errors.append(
            f"Private key for {chain_name} is too short "
            f"(minimum {MIN_PRIVATE_KEY_LENGTH} characters)"
        )
    if private_key.startswith("0x") and not _HEX_RE.fullmatch(private_key):
        errors.append(f"Private key for {chain_name} contains invalid hex characters")
    return errors


def _validate_public_key(public_key: Optional[str]) -> list[str]:
    if not public_key:
        return ["Missing public key for Starknet"]
    if public_key in PLACEHOLDER_VALUES:
        return ["Public key for Starknet appears to be placeholder value"]
    if len(public_key) < MIN_PRIVATE_KEY_LENGTH:
        return [
            f"Public key for Starknet is too short (minimum {MIN_PRIVATE_KEY_LENGTH} characters)"
        ]
    return []


class ChainConfigStore:
    """Resolves and validates per-chain credentials from settings.

    Configs are derived on demand from the (cached) settings, so the store
    itself holds no mutable state and is safe to share across requests.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def resolve(self, chain_name: str) -> ChainConfig:
        """Build the ChainConfig for a chain.

        Raises:
            UnsupportedChainError: Unknown chain name
            ConfigMissingError: RPC URL, private key or (Starknet) public key absent
        """
        spec = get_chain_spec(chain_name)
        rpc_url, private_key, public_key = self.settings.get_chain_credentials(spec.name)
        prefix = spec.name.upper()

        if not rpc_url:
            raise ConfigMissingError(f"{prefix}_RPC_URL is required but not set", spec.name)
        if not private_key:
            raise ConfigMissingError(f"{prefix}_PRIVATE_KEY is required but not set", spec.name)
        if spec.family == ChainFamily.STARKNET and not public_key:
            raise ConfigMissingError(f"{prefix}_PUBLIC_KEY is required but not set", spec.name)

        return ChainConfig(
            rpc_url=rpc_url,
            private_key=private_key,
            public_key=public_key or None,
        )

    def validate(self, chain_name: str) -> ValidationResult:
        """Check a chain's configuration without raising."""
        spec = CHAINS.get(chain_name)
        if spec is None:
            return ValidationResult.from_errors(
                [f"Unsupported chain: {chain_name}. Supported chains: {', '.join(SUPPORTED_CHAINS)}"]
            )

        rpc_url, private_key, public_key = self.settings.get_chain_credentials(spec.name)

        errors = _validate_rpc_url(rpc_url, spec.name)
        errors.extend(_validate_private_key(private_key, spec.name))
        if spec.family == ChainFamily.STARKNET:
            errors.extend(_validate_public_key(public_key))

        return ValidationResult.from_errors(errors)

    def valid_chains(self) -> list[str]:
        """Chains whose configuration passes validation."""
        return [name for name in SUPPORTED_CHAINS if self.validate(name).is_valid]

    def log_status(self) -> None:
        """Log configuration summary with all credentials masked."""
        safe = self.settings.get_safe_dict()

        logger.info("Configuration status:")
        logger.info(f"  Default slippage: {safe['default_slippage']}%")
        logger.info(f"  Gas price multiplier: {safe['gas_price_multiplier']}x")
        logger.info(f"  Transaction timeout: {safe['transaction_timeout']}s")
        logger.info(f"  API key: {safe['fibrous_api_key']}")

        for name in SUPPORTED_CHAINS:
            result = self.validate(name)
            if result.is_valid:
                logger.info(f"  [+] {name}: valid ({safe['chains'][name]['private_key']})")
            else:
                logger.warning(f"  [-] {name}: invalid - {'; '.join(result.errors)}")

        valid = self.valid_chains()
        if valid:
            logger.info(f"Available for swaps: {', '.join(valid)}")
        else:
            logger.warning("No chains available for swaps (all configurations invalid)")
