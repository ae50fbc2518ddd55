"""Pytest configuration and fixtures."""

from functools import partial
from unittest.mock import MagicMock

import pytest
from eth_account import Account

from fibrous_mcp.chains import ChainConfig, ChainConfigStore
from fibrous_mcp.config import Settings
from fibrous_mcp.routing.base import (
    ChainInfo,
    ChainRegistry,
    RouteAndCalldata,
    RouteClient,
)

# Well-known throwaway test key; never funded
EVM_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
EVM_ADDRESS = Account.from_key(EVM_PRIVATE_KEY).address

STARKNET_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcde"
STARKNET_ACCOUNT = "0x04a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f"

BASE_ROUTER = "0x274602a953847d807231d2370072F5f4E4594B44"
SCROLL_ROUTER = "0x4bb92d3f730d5a7976707570228f5cb7e09094c5"
STARKNET_ROUTER = "0x00f6f4cf62e3c010e0ac2451cc7807b5eec19a40b0faacd00cca3914280fdf5a"

BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
BASE_WETH = "0x4200000000000000000000000000000000000006"
STARKNET_ETH = "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7"
STARKNET_USDC = "0x053c91253bc9682c04929ca02ed00b3e423f6710d2ee7e0d5ebb06f3ecf368a8"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the process environment and .env file."""
    values = {
        "base_rpc_url": "https://mainnet.base.org",
        "base_private_key": EVM_PRIVATE_KEY,
        "scroll_rpc_url": "https://rpc.scroll.io",
        "scroll_private_key": EVM_PRIVATE_KEY,
        "starknet_rpc_url": "https://starknet-mainnet.public.blastapi.io",
        "starknet_private_key": STARKNET_PRIVATE_KEY,
        "starknet_public_key": STARKNET_ACCOUNT,
        "fibrous_api_key": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def config_store(settings) -> ChainConfigStore:
    return ChainConfigStore(settings)


@pytest.fixture
def registry() -> ChainRegistry:
    return ChainRegistry(
        [
            ChainInfo("base", 8453, BASE_ROUTER),
            ChainInfo("scroll", 534352, SCROLL_ROUTER),
            ChainInfo("starknet", 23448594291968334, STARKNET_ROUTER),
        ]
    )


@pytest.fixture
def base_config() -> ChainConfig:
    return ChainConfig(rpc_url="https://mainnet.base.org", private_key=EVM_PRIVATE_KEY)


@pytest.fixture
def starknet_config() -> ChainConfig:
    return ChainConfig(
        rpc_url="https://starknet-mainnet.public.blastapi.io",
        private_key=STARKNET_PRIVATE_KEY,
        public_key=STARKNET_ACCOUNT,
    )


@pytest.fixture
def route_client() -> MagicMock:
    """Route client whose async methods are AsyncMocks.

    ``build_approve_call`` keeps its real (local, pure) behaviour.
    """
    client = MagicMock(spec=RouteClient)
    client.build_approve_call.side_effect = partial(RouteClient.build_approve_call, client)
    client.build_route_and_calldata.return_value = RouteAndCalldata(
        route={"success": True, "outputAmount": "2500000"},
        calldata="0xdeadbeef",
    )
    return client
