"""Fibrous Finance aggregator integration.

Thin async client for the Fibrous router API. Routes are computed by the
service; this module only shapes requests and normalizes failures.
API docs: https://docs.fibrous.finance
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from fibrous_mcp.config import Settings, get_settings
from fibrous_mcp.errors import RouteUnavailableError
from fibrous_mcp.routing.base import (
    ChainRegistry,
    RouteAndCalldata,
    RouteClient,
    RouteOptions,
)

logger = logging.getLogger(__name__)

FIBROUS_API_URL = "https://api.fibrous.finance"
FIBROUS_GRAPH_URL = "https://graph.fibrous.finance"


class FibrousClient(RouteClient):
    """Fibrous router API client.

    Holds one ``httpx.AsyncClient`` for the process; pass ``http_client`` to
    share an existing one (tests inject a client over ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = FIBROUS_API_URL,
        graph_url: str = FIBROUS_GRAPH_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.graph_url = graph_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FibrousClient":
        settings = settings or get_settings()
        return cls(
            api_key=settings.fibrous_api_key,
            api_url=settings.fibrous_api_url,
            graph_url=settings.fibrous_graph_url,
            timeout=settings.http_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "FibrousClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _get_headers(self) -> dict:
        """Get API headers with authorization."""
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    async def _get(self, url: str, params: Optional[dict] = None) -> Any:
        """GET a JSON document, mapping every failure to RouteUnavailableError."""
        try:
            response = await self._client.get(url, headers=self._get_headers(), params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Fibrous API request failed: {type(e).__name__}: {e}")
            raise RouteUnavailableError(f"Fibrous API request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Fibrous API error: {response.status_code} - {response.text}")
            raise RouteUnavailableError(
                f"Fibrous API error: {response.status_code} - {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RouteUnavailableError("Fibrous API returned invalid JSON") from e

        if isinstance(data, dict) and data.get("success") is False:
            message = data.get("errorMessage") or data.get("message") or "Route not available"
            raise RouteUnavailableError(message)

        return data

    def _chain_url(self, chain_name: str, path: str) -> str:
        return f"{self.api_url}/{chain_name}/v2/{path}"

    @staticmethod
    def _route_params(
        amount: int,
        token_in_address: str,
        token_out_address: str,
        chain_id: Optional[int],
        options: Optional[RouteOptions],
    ) -> dict:
        params = {
            "amount": str(amount),
            "tokenInAddress": token_in_address,
            "tokenOutAddress": token_out_address,
        }
        if chain_id is not None:
            params["chainId"] = str(chain_id)
        if options:
            params.update(options.to_params())
        return params

    async def fetch_chain_registry(self) -> ChainRegistry:
        data = await self._get(f"{self.graph_url}/chains")
        registry = ChainRegistry.from_payload(data)
        logger.info(f"Loaded {len(registry)} chain(s) from Fibrous: {', '.join(registry.names())}")
        return registry

    async def supported_tokens(self, chain_name: str) -> dict:
        data = await self._get(self._chain_url(chain_name, "tokens"))
        if isinstance(data, list):
            return {token.get("symbol", token.get("address")): token for token in data}
        return data or {}

    async def supported_protocols(self, chain_name: str) -> dict:
        return await self._get(self._chain_url(chain_name, "protocols")) or {}

    async def get_token(self, address: str, chain_name: str) -> Optional[dict]:
        try:
            return await self._get(self._chain_url(chain_name, f"tokens/{address}"))
        except RouteUnavailableError as e:
            logger.debug(f"Token lookup failed for {address} on {chain_name}: {e}")
            return None

    async def get_best_route(
        self,
        amount: int,
        token_in_address: str,
        token_out_address: str,
        chain_name: str,
        chain_id: Optional[int],
        options: Optional[RouteOptions] = None,
    ) -> dict:
        logger.debug(f"Requesting route: {amount} {token_in_address} -> {token_out_address} on {chain_name}")
        params = self._route_params(amount, token_in_address, token_out_address, chain_id, options)
        return await self._get(self._chain_url(chain_name, "route"), params)

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
        params = self._route_params(
            input_amount, token_in_address, token_out_address, chain_id, options
        )
        params["slippage"] = str(slippage)
        params["destination"] = destination

        data = await self._get(self._chain_url(chain_name, "routeAndCallData"), params)
        if not isinstance(data, dict) or "calldata" not in data:
            raise RouteUnavailableError("Fibrous API response is missing calldata")

        return RouteAndCalldata(route=data.get("route") or {}, calldata=data["calldata"])

    async def get_best_route_batch(
        self,
        amounts: Sequence[int],
        token_in_addresses: Sequence[str],
        token_out_addresses: Sequence[str],
        chain_name: str,
        chain_id: Optional[int],
    ) -> list:
        params = {
            "amounts": ",".join(str(a) for a in amounts),
            "tokenInAddresses": ",".join(token_in_addresses),
            "tokenOutAddresses": ",".join(token_out_addresses),
        }
        if chain_id is not None:
            params["chainId"] = str(chain_id)
        return await self._get(self._chain_url(chain_name, "routeBatch"), params)

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
        params = {
            "amounts": ",".join(str(a) for a in input_amounts),
            "tokenInAddresses": ",".join(token_in_addresses),
            "tokenOutAddresses": ",".join(token_out_addresses),
            "slippage": str(slippage),
            "destination": destination,
        }
        if chain_id is not None:
            params["chainId"] = str(chain_id)
        return await self._get(self._chain_url(chain_name, "calldataBatch"), params)


def create_fibrous_client(settings: Optional[Settings] = None) -> FibrousClient:
    """Create a Fibrous client from settings."""
    return FibrousClient.from_settings(settings)
