"""Swap execution engine and gas estimator.

Normalizes the EVM and Starknet flows behind one interface:
- execute_swap: approve + swap, returns a SwapResult (never raises)
- estimate_swap_gas: same call building, stops before submission, falls
  back to fixed per-family estimates when live estimation fails

Each call is a single attempt. Nothing is retried, and an approval that
has been submitted stays on-chain even if the caller cancels afterwards.
"""

import logging
from typing import Optional

from fibrous_mcp.chains import ChainConfig, ChainFamily, get_chain_spec
from fibrous_mcp.config import Settings, get_settings
from fibrous_mcp.errors import FibrousMCPError, InvalidAmountError, InvalidFormatError
from fibrous_mcp.routing.base import ChainRegistry, RouteClient
from fibrous_mcp.swap.base import ChainBackend
from fibrous_mcp.swap.evm import EVMBackend
from fibrous_mcp.swap.models import GasEstimate, SwapParams, SwapRequest, SwapResult
from fibrous_mcp.swap.starknet import StarknetBackend
from fibrous_mcp.utils.amounts import parse_amount

logger = logging.getLogger(__name__)


class SwapEngine:
    """Executes and estimates swaps across all supported chains.

    The chain registry is an immutable snapshot injected at construction;
    the engine holds no per-request state and can serve concurrent calls.
    """

    def __init__(
        self,
        route_client: RouteClient,
        registry: ChainRegistry,
        settings: Optional[Settings] = None,
        backends: Optional[dict[ChainFamily, ChainBackend]] = None,
    ):
        self.route_client = route_client
        self.registry = registry
        self.settings = settings or get_settings()
        self.backends = backends or {
            ChainFamily.EVM: EVMBackend(route_client, registry, self.settings),
            ChainFamily.STARKNET: StarknetBackend(route_client, registry, self.settings),
        }

    def backend_for(self, chain_name: str) -> ChainBackend:
        return self.backends[get_chain_spec(chain_name).family]

    @staticmethod
    def _parse_amount(params: SwapParams) -> int:
        try:
            return parse_amount(params.amount)
        except InvalidFormatError as e:
            raise InvalidAmountError(str(e), params.chain_name) from e

    async def _prepare(self, params: SwapParams, backend: ChainBackend, config: ChainConfig) -> SwapRequest:
        amount = self._parse_amount(params)
        slippage = params.slippage if params.slippage is not None else self.settings.default_slippage
        receiver = params.receiver_address or await backend.account_address(config)

        return SwapRequest(
            amount=amount,
            token_in_address=params.token_in_address,
            token_out_address=params.token_out_address,
            slippage=slippage,
            receiver_address=receiver,
            chain_name=params.chain_name,
            options=params.options,
        )

    async def execute_swap(self, params: SwapParams, config: ChainConfig) -> SwapResult:
        """Execute a swap.

        Args:
            params: Swap request (amount in smallest units)
            config: Credentials for params.chain_name

        Returns:
            SwapResult - success with transaction hash, or failure with
            error message and code. Exceptions never escape.
        """
        chain_name = params.chain_name
        backend: Optional[ChainBackend] = None

        try:
            backend = self.backend_for(chain_name)
            request = await self._prepare(params, backend, config)

            logger.info(
                f"Starting {chain_name} swap: {request.amount} of {request.token_in_address} -> "
                f"{request.token_out_address} (receiver: {request.receiver_address}, "
                f"slippage: {request.slippage}%)"
            )

            result = await backend.execute(request, config)
            logger.info(f"Swap successful on {chain_name}: {result.transaction_hash}")
            return result

        except FibrousMCPError as e:
            message = str(e) or (backend.generic_error if backend else "Swap failed")
            logger.error(f"Swap execution failed on {chain_name} [{e.code}]: {message}")
            return SwapResult.failure(message, error_code=e.code, chain_name=chain_name)

        except Exception as e:
            message = str(e) or (backend.generic_error if backend else "Unknown error during swap execution")
            logger.error(f"Swap execution failed on {chain_name}: {type(e).__name__}: {message}")
            return SwapResult.failure(message, error_code="Unknown", chain_name=chain_name)

    async def estimate_swap_gas(self, params: SwapParams, config: ChainConfig) -> GasEstimate:
        """Estimate the fee of a swap without submitting it.

        Any estimation failure (RPC error, missing router, route failure)
        yields the chain family's fixed fallback estimate instead.

        Raises:
            UnsupportedChainError: unknown chain
            InvalidAmountError: malformed amount
        """
        backend = self.backend_for(params.chain_name)
        self._parse_amount(params)

        try:
            request = await self._prepare(params, backend, config)
            logger.info(f"Estimating gas for {params.chain_name} swap...")
            return await backend.estimate(request, config)
        except Exception as e:
            logger.warning(
                f"Gas estimation failed for {params.chain_name}, using fallback: "
                f"{type(e).__name__}: {e}"
            )
            return backend.fallback_estimate()


async def execute_swap(
    params: SwapParams,
    config: ChainConfig,
    route_client: RouteClient,
    registry: ChainRegistry,
    settings: Optional[Settings] = None,
) -> SwapResult:
    """One-shot helper around SwapEngine.execute_swap."""
    return await SwapEngine(route_client, registry, settings).execute_swap(params, config)


async def estimate_swap_gas(
    params: SwapParams,
    config: ChainConfig,
    route_client: RouteClient,
    registry: ChainRegistry,
    settings: Optional[Settings] = None,
) -> GasEstimate:
    """One-shot helper around SwapEngine.estimate_swap_gas."""
    return await SwapEngine(route_client, registry, settings).estimate_swap_gas(params, config)
