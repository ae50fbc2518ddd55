"""Tests for the Fibrous route client and chain registry."""

import httpx
import pytest

from conftest import BASE_ROUTER, BASE_USDC, BASE_WETH, STARKNET_ETH, STARKNET_ROUTER
from fibrous_mcp.errors import RouterNotFoundError, RouteUnavailableError
from fibrous_mcp.routing.base import ChainInfo, ChainRegistry, RouteOptions
from fibrous_mcp.routing.fibrous import FibrousClient

API_URL = "https://api.fibrous.test"
GRAPH_URL = "https://graph.fibrous.test"


def make_client(handler, api_key=None) -> FibrousClient:
    return FibrousClient(
        api_key=api_key,
        api_url=API_URL,
        graph_url=GRAPH_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestChainRegistry:
    """Tests for the registry snapshot."""

    def test_from_list_payload(self):
        registry = ChainRegistry.from_payload(
            [
                {"chain_name": "Base", "chain_id": 8453, "router_address": BASE_ROUTER},
                {"chain_name": "starknet", "chain_id": "23448594291968334"},
            ]
        )

        assert registry.names() == ["base", "starknet"]
        assert registry.chain_id("base") == 8453
        assert registry.chain_id("starknet") == 23448594291968334
        assert registry.get("starknet").router_address is None

    def test_from_wrapped_camel_case_payload(self):
        registry = ChainRegistry.from_payload(
            {"chains": [{"chainName": "scroll", "chainId": 534352, "routerAddress": "0xabc"}]}
        )

        assert "scroll" in registry
        assert registry.require_router("scroll").router_address == "0xabc"

    def test_skips_malformed_entries(self):
        registry = ChainRegistry.from_payload([{"chain_id": 1}, {"chain_name": "base"}])

        assert len(registry) == 0

    def test_require_router_missing(self):
        registry = ChainRegistry([ChainInfo("base", 8453)])

        with pytest.raises(RouterNotFoundError, match="Router address not found for base"):
            registry.require_router("base")

        with pytest.raises(RouterNotFoundError, match="Router address not found for scroll"):
            registry.require_router("scroll")


class TestRouteOptions:
    """Tests for routing restriction parameters."""

    def test_to_params(self):
        options = RouteOptions(direct=True, exclude_protocols=("1", "7"))

        assert options.to_params() == {"direct": "true", "excludeProtocols": "1,7"}

    def test_defaults(self):
        assert RouteOptions().to_params() == {"direct": "false"}


class TestApproveCall:
    """Tests for the locally built Starknet approve call."""

    def test_small_amount(self):
        client = FibrousClient(http_client=httpx.AsyncClient())
        call = client.build_approve_call(10**18, STARKNET_ETH, STARKNET_ROUTER)

        assert call.contract_address == STARKNET_ETH
        assert call.entrypoint == "approve"
        assert call.calldata == (STARKNET_ROUTER, str(10**18), "0")

    def test_u256_split(self):
        client = FibrousClient(http_client=httpx.AsyncClient())
        call = client.build_approve_call(2**128 + 5, STARKNET_ETH, STARKNET_ROUTER)

        assert call.calldata == (STARKNET_ROUTER, "5", "1")


class TestFibrousClient:
    """Tests for the HTTP client against a mock transport."""

    @pytest.mark.asyncio
    async def test_fetch_chain_registry(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url == httpx.URL(f"{GRAPH_URL}/chains")
            return httpx.Response(
                200,
                json=[{"chain_name": "base", "chain_id": 8453, "router_address": BASE_ROUTER}],
            )

        registry = await make_client(handler).fetch_chain_registry()

        assert registry.require_router("base").router_address == BASE_ROUTER

    @pytest.mark.asyncio
    async def test_get_best_route_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["api_key"] = request.headers.get("X-API-Key")
            return httpx.Response(200, json={"success": True, "outputAmount": "42"})

        client = make_client(handler, api_key="test-key")
        route = await client.get_best_route(
            amount=1_000_000,
            token_in_address=BASE_USDC,
            token_out_address=BASE_WETH,
            chain_name="base",
            chain_id=8453,
            options=RouteOptions(direct=True, exclude_protocols=("3",)),
        )

        assert route["outputAmount"] == "42"
        assert seen["path"] == "/base/v2/route"
        assert seen["api_key"] == "test-key"
        assert seen["params"] == {
            "amount": "1000000",
            "tokenInAddress": BASE_USDC,
            "tokenOutAddress": BASE_WETH,
            "chainId": "8453",
            "direct": "true",
            "excludeProtocols": "3",
        }

    @pytest.mark.asyncio
    async def test_no_api_key_header_when_unset(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "X-API-Key" not in request.headers
            return httpx.Response(200, json={})

        await make_client(handler).supported_protocols("base")

    @pytest.mark.asyncio
    async def test_failure_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "errorMessage": "No route found"})

        with pytest.raises(RouteUnavailableError, match="No route found"):
            await make_client(handler).get_best_route(1, BASE_USDC, BASE_WETH, "base", 8453)

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        with pytest.raises(RouteUnavailableError, match="503"):
            await make_client(handler).get_best_route(1, BASE_USDC, BASE_WETH, "base", 8453)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RouteUnavailableError, match="connection refused"):
            await make_client(handler).supported_tokens("base")

    @pytest.mark.asyncio
    async def test_build_route_and_calldata(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/base/v2/routeAndCallData"
            assert request.url.params["slippage"] == "0.5"
            assert request.url.params["destination"] == BASE_WETH
            return httpx.Response(
                200,
                json={"route": {"outputAmount": "999"}, "calldata": "0xabcdef"},
            )

        result = await make_client(handler).build_route_and_calldata(
            input_amount=1000,
            token_in_address=BASE_USDC,
            token_out_address=BASE_WETH,
            slippage=0.5,
            destination=BASE_WETH,
            chain_name="base",
            chain_id=8453,
        )

        assert result.calldata == "0xabcdef"
        assert result.output_amount == "999"

    @pytest.mark.asyncio
    async def test_build_route_missing_calldata(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"route": {}})

        with pytest.raises(RouteUnavailableError, match="missing calldata"):
            await make_client(handler).build_route_and_calldata(
                1000, BASE_USDC, BASE_WETH, 1.0, BASE_WETH, "base", 8453
            )

    @pytest.mark.asyncio
    async def test_supported_tokens_list_keyed_by_symbol(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[{"symbol": "USDC", "address": BASE_USDC}, {"symbol": "WETH", "address": BASE_WETH}],
            )

        tokens = await make_client(handler).supported_tokens("base")

        assert set(tokens) == {"USDC", "WETH"}
        assert tokens["USDC"]["address"] == BASE_USDC

    @pytest.mark.asyncio
    async def test_get_token_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        assert await make_client(handler).get_token("0x1", "starknet") is None

    @pytest.mark.asyncio
    async def test_batch_route_params(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/starknet/v2/routeBatch"
            assert request.url.params["amounts"] == "1,2"
            assert request.url.params["tokenInAddresses"] == "0xa,0xb"
            return httpx.Response(200, json=[{"success": True}, {"success": True}])

        routes = await make_client(handler).get_best_route_batch(
            [1, 2], ["0xa", "0xb"], ["0xc", "0xd"], "starknet", None
        )

        assert len(routes) == 2

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        http_client = httpx.AsyncClient()
        async with FibrousClient(http_client=http_client):
            pass

        assert not http_client.is_closed
        await http_client.aclose()
