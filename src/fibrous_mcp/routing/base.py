"""Abstract route/calldata client interface and the chain registry snapshot."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Union

from fibrous_mcp.errors import RouterNotFoundError

logger = logging.getLogger(__name__)

Calldata = Union[str, list]


@dataclass(frozen=True)
class ChainInfo:
    """Aggregator-side identity of a chain."""

    chain_name: str
    chain_id: int
    router_address: Optional[str] = None


class ChainRegistry:
    """Immutable snapshot of the aggregator's chain table.

    Fetched once at startup and injected into the swap engine; never
    refreshed while requests are in flight.
    """

    def __init__(self, chains: Sequence[ChainInfo] = ()):
        self._chains: Mapping[str, ChainInfo] = MappingProxyType(
            {info.chain_name: info for info in chains}
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "ChainRegistry":
        """Build a registry from the API's chain list.

        Accepts a list of ``{"chain_name", "chain_id", "router_address"}``
        objects, optionally wrapped in ``{"chains": [...]}``.
        """
        if isinstance(payload, dict):
            payload = payload.get("chains", payload.get("data", []))

        chains = []
        for item in payload or []:
            name = item.get("chain_name") or item.get("chainName")
            chain_id = item.get("chain_id", item.get("chainId"))
            if not name or chain_id is None:
                logger.debug(f"Skipping malformed chain entry: {item}")
                continue
            chains.append(
                ChainInfo(
                    chain_name=str(name).lower(),
                    chain_id=int(chain_id),
                    router_address=item.get("router_address") or item.get("routerAddress"),
                )
            )
        return cls(chains)

    def get(self, chain_name: str) -> Optional[ChainInfo]:
        return self._chains.get(chain_name)

    def chain_id(self, chain_name: str) -> Optional[int]:
        info = self.get(chain_name)
        return info.chain_id if info else None

    def require_router(self, chain_name: str) -> ChainInfo:
        """Return the chain entry, raising if it has no router address."""
        info = self.get(chain_name)
        if info is None or not info.router_address:
            raise RouterNotFoundError(f"Router address not found for {chain_name}", chain_name)
        return info

    def names(self) -> list[str]:
        return list(self._chains)

    def __contains__(self, chain_name: object) -> bool:
        return chain_name in self._chains

    def __len__(self) -> int:
        return len(self._chains)


@dataclass(frozen=True)
class RouteOptions:
    """Routing restrictions forwarded to the aggregator."""

    direct: bool = False
    exclude_protocols: tuple[str, ...] = ()

    def to_params(self) -> dict:
        params = {"direct": "true" if self.direct else "false"}
        if self.exclude_protocols:
            params["excludeProtocols"] = ",".join(str(p) for p in self.exclude_protocols)
        return params


@dataclass(frozen=True)
class StarknetCall:
    """A single contract invocation in a Starknet multicall."""

    contract_address: str
    entrypoint: str
    calldata: tuple = ()

    def to_dict(self) -> dict:
        return {
            "contractAddress": self.contract_address,
            "entrypoint": self.entrypoint,
            "calldata": list(self.calldata),
        }


@dataclass
class RouteAndCalldata:
    """Route description plus chain-specific calldata.

    ``calldata`` is a list of felts on Starknet and a hex payload on EVM
    chains; the swap layer never inspects its contents.
    """

    route: dict
    calldata: Calldata
    extra: dict = field(default_factory=dict)

    @property
    def output_amount(self) -> Optional[str]:
        value = self.route.get("outputAmount") if isinstance(self.route, dict) else None
        return str(value) if value is not None else None

    def to_dict(self) -> dict:
        return {"route": self.route, "calldata": self.calldata}


class RouteClient(ABC):
    """Contract of the external aggregation service."""

    @abstractmethod
    async def fetch_chain_registry(self) -> ChainRegistry:
        """Fetch chain name -> id -> router address table."""
        pass

    @abstractmethod
    async def supported_tokens(self, chain_name: str) -> dict:
        pass

    @abstractmethod
    async def supported_protocols(self, chain_name: str) -> dict:
        pass

    @abstractmethod
    async def get_token(self, address: str, chain_name: str) -> Optional[dict]:
        pass

    @abstractmethod
    async def get_best_route(
        self,
        amount: int,
        token_in_address: str,
        token_out_address: str,
        chain_name: str,
        chain_id: Optional[int],
        options: Optional[RouteOptions] = None,
    ) -> dict:
        """Get the best route for a swap.

        Raises:
            RouteUnavailableError: API failure or explicit failure payload
        """
        pass

    @abstractmethod
    async def build_route_and_calldata(
        self,
        input_amount: int,
        token_in_address: str,
        token_out_address: str,
        slippage: float,
        destination: str,
        chain_name: str,
        chain_id: Optional[int],
        options: Optional[RouteOptions] = None,
    ) -> RouteAndCalldata:
        """Get route plus calldata for the router's swap entry point.

        Raises:
            RouteUnavailableError: API failure or explicit failure payload
        """
        pass

    @abstractmethod
    async def get_best_route_batch(
        self,
        amounts: Sequence[int],
        token_in_addresses: Sequence[str],
        token_out_addresses: Sequence[str],
        chain_name: str,
        chain_id: Optional[int],
    ) -> list:
        pass

    @abstractmethod
    async def build_batch_transaction(
        self,
        input_amounts: Sequence[int],
        token_in_addresses: Sequence[str],
        token_out_addresses: Sequence[str],
        slippage: float,
        destination: str,
        chain_name: str,
        chain_id: Optional[int],
    ) -> list:
        pass

    def build_approve_call(self, amount: int, token_address: str, spender: str) -> StarknetCall:
        """Build a Starknet ERC-20 ``approve(spender, u256)`` call."""
        low = amount & ((1 << 128) - 1)
        high = amount >> 128
        return StarknetCall(
            contract_address=token_address,
            entrypoint="approve",
            calldata=(spender, str(low), str(high)),
        )
