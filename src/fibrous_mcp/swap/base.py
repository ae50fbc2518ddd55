"""Chain-family backend interface.

Each transaction model (EVM, Starknet) implements ``build``, ``estimate`` and
``execute`` once; the engine selects the backend from the chain's family at
the top of each operation and never branches on chain names itself.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from fibrous_mcp.chains import ChainConfig, ChainFamily, get_chain_spec
from fibrous_mcp.config import Settings
from fibrous_mcp.errors import FibrousMCPError, RouteUnavailableError
from fibrous_mcp.routing.base import ChainRegistry, RouteAndCalldata, RouteClient, StarknetCall
from fibrous_mcp.swap.gas import fallback_estimate
from fibrous_mcp.swap.models import GasEstimate, SwapRequest, SwapResult

logger = logging.getLogger(__name__)


@dataclass
class PreparedSwap:
    """Everything needed to submit (or estimate) a swap, short of signing."""

    route: RouteAndCalldata
    router_address: str
    calls: list[StarknetCall] = field(default_factory=list)  # Starknet multicall
    data: Optional[str] = None  # EVM payload
    value: int = 0  # EVM native value


class ChainBackend(ABC):
    """Swap building, estimation and execution for one chain family."""

    family: ChainFamily
    generic_error = "Swap failed"

    def __init__(self, route_client: RouteClient, registry: ChainRegistry, settings: Settings):
        self.route_client = route_client
        self.registry = registry
        self.settings = settings

    @abstractmethod
    async def account_address(self, config: ChainConfig) -> str:
        """Address of the executing account for this chain."""
        pass

    @abstractmethod
    async def build(self, request: SwapRequest, config: ChainConfig) -> PreparedSwap:
        pass

    @abstractmethod
    async def estimate(self, request: SwapRequest, config: ChainConfig) -> GasEstimate:
        """Live fee estimate. May raise; the engine applies the fallback."""
        pass

    @abstractmethod
    async def execute(self, request: SwapRequest, config: ChainConfig) -> SwapResult:
        """Submit the swap. Raises a FibrousMCPError subclass on failure."""
        pass

    def fallback_estimate(self) -> GasEstimate:
        return fallback_estimate(self.family)

    def explorer_url(self, chain_name: str, tx_hash: str) -> str:
        return get_chain_spec(chain_name).explorer_url(tx_hash)

    async def fetch_calldata(self, request: SwapRequest) -> RouteAndCalldata:
        """Ask the aggregator for route + calldata for this request."""
        chain_id = self.registry.chain_id(request.chain_name)
        try:
            return await self.route_client.build_route_and_calldata(
                input_amount=request.amount,
                token_in_address=request.token_in_address,
                token_out_address=request.token_out_address,
                slippage=request.slippage,
                destination=request.receiver_address,
                chain_name=request.chain_name,
                chain_id=chain_id,
                options=request.options,
            )
        except FibrousMCPError:
            raise
        except Exception as e:
            raise RouteUnavailableError(
                str(e) or "Failed to build route", request.chain_name
            ) from e
