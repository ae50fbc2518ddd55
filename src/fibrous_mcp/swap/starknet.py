"""Starknet swap backend.

Starknet accounts are deployed contracts, so approval and swap go out as a
single atomic multicall ``[approve(router, amount), router.swap(calldata)]``
signed with the account's key. Fees are quoted with ``estimate_fee`` rather
than a gas price auction.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from starknet_py.hash.selector import get_selector_from_name
from starknet_py.net.account.account import Account
from starknet_py.net.client_models import Call, ResourceBoundsMapping
from starknet_py.net.full_node_client import FullNodeClient
from starknet_py.net.models.chains import StarknetChainId
from starknet_py.net.signer.stark_curve_signer import KeyPair

from fibrous_mcp.chains import ChainConfig, ChainFamily
from fibrous_mcp.errors import FibrousMCPError, MissingCredentialError, SubmissionFailedError
from fibrous_mcp.routing.base import StarknetCall
from fibrous_mcp.swap.base import ChainBackend, PreparedSwap
from fibrous_mcp.swap.models import GasEstimate, SwapRequest, SwapResult

logger = logging.getLogger(__name__)

SWAP_ENTRYPOINT = "swap"


def to_felt(value: Any) -> int:
    """Coerce a calldata element (int, hex or decimal string) to a felt."""
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text, 16) if text.lower().startswith("0x") else int(text)


def to_starknet_call(call: StarknetCall) -> Call:
    return Call(
        to_addr=to_felt(call.contract_address),
        selector=get_selector_from_name(call.entrypoint),
        calldata=[to_felt(item) for item in call.calldata],
    )


@dataclass
class FeeEstimate:
    gas_consumed: Optional[int] = None
    gas_price: Optional[int] = None
    overall_fee: Optional[int] = None


def _first_attr(obj: Any, *names: str) -> Optional[int]:
    for name in names:
        value = getattr(obj, name, None)
        if value is not None:
            return value
    return None


class StarknetAccountClient:
    """starknet-py account bound to the configured deployed account."""

    def __init__(self, rpc_url: str, account_address: str, private_key: str):
        self.rpc_url = rpc_url
        self.account_address = account_address
        self.account = Account(
            client=FullNodeClient(node_url=rpc_url),
            address=to_felt(account_address),
            key_pair=KeyPair.from_private_key(to_felt(private_key)),
            chain=StarknetChainId.MAINNET,
        )

    async def execute(self, calls: Sequence[StarknetCall]) -> str:
        """Sign and submit the calls as one multicall.

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        response = await self.account.execute_v3(
            calls=[to_starknet_call(c) for c in calls],
            auto_estimate=True,
        )
        return hex(response.transaction_hash)

    async def estimate_fee(self, calls: Sequence[StarknetCall]) -> FeeEstimate:
        invoke = await self.account.sign_invoke_v3(
            calls=[to_starknet_call(c) for c in calls],
            resource_bounds=ResourceBoundsMapping.init_with_zeros(),
        )
        estimate = await self.account.estimate_fee(invoke)
        return FeeEstimate(
            gas_consumed=_first_attr(estimate, "gas_consumed", "l2_gas_consumed", "l1_gas_consumed"),
            gas_price=_first_attr(estimate, "gas_price", "l2_gas_price", "l1_gas_price"),
            overall_fee=_first_attr(estimate, "overall_fee"),
        )


AccountFactory = Callable[[str, str, str], StarknetAccountClient]


def _int_string(value: Optional[int]) -> str:
    return str(int(value)) if value is not None else "0"


class StarknetBackend(ChainBackend):
    """Approve + swap multicall flow for the account-abstraction chain."""

    family = ChainFamily.STARKNET
    generic_error = "Starknet swap failed"

    def __init__(self, route_client, registry, settings, account_factory: Optional[AccountFactory] = None):
        super().__init__(route_client, registry, settings)
        self.account_factory = account_factory or StarknetAccountClient

    @staticmethod
    def _require_public_key(config: ChainConfig) -> str:
        if not config.public_key:
            raise MissingCredentialError("Starknet public key is required", "starknet")
        return config.public_key

    def _account(self, config: ChainConfig) -> StarknetAccountClient:
        return self.account_factory(
            config.rpc_url, self._require_public_key(config), config.private_key
        )

    async def account_address(self, config: ChainConfig) -> str:
        return self._require_public_key(config)

    async def build(self, request: SwapRequest, config: ChainConfig) -> PreparedSwap:
        self._require_public_key(config)
        info = self.registry.require_router(request.chain_name)

        approve_call = self.route_client.build_approve_call(
            request.amount, request.token_in_address, info.router_address
        )
        route = await self.fetch_calldata(request)
        swap_call = StarknetCall(
            contract_address=info.router_address,
            entrypoint=SWAP_ENTRYPOINT,
            calldata=tuple(route.calldata),
        )
        return PreparedSwap(
            route=route,
            router_address=info.router_address,
            calls=[approve_call, swap_call],
        )

    async def execute(self, request: SwapRequest, config: ChainConfig) -> SwapResult:
        prepared = await self.build(request, config)

        try:
            tx_hash = await self._account(config).execute(prepared.calls)
        except FibrousMCPError:
            raise
        except Exception as e:
            raise SubmissionFailedError(str(e) or self.generic_error, request.chain_name) from e

        return SwapResult.ok(
            transaction_hash=tx_hash,
            explorer_url=self.explorer_url(request.chain_name, tx_hash),
            output_amount=prepared.route.output_amount,
            chain_name=request.chain_name,
        )

    async def estimate(self, request: SwapRequest, config: ChainConfig) -> GasEstimate:
        prepared = await self.build(request, config)
        fee = await self._account(config).estimate_fee(prepared.calls)

        logger.info(
            f"Starknet fee estimate - Consumed: {fee.gas_consumed}, Fee: {fee.overall_fee}"
        )
        return GasEstimate(
            gas_estimate=_int_string(fee.gas_consumed),
            gas_price=_int_string(fee.gas_price),
            estimated_cost=_int_string(fee.overall_fee),
        )
