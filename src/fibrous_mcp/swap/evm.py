"""EVM (Base, Scroll) swap backend.

Signs with a raw private key through web3.py's async client:
1. Check ERC-20 allowance for the router, approve the exact amount if short
2. Fetch route + calldata from Fibrous
3. Send the calldata to the router at network gas price * multiplier
4. Wait for one confirmation and report gas used
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

from fibrous_mcp.chains import ChainConfig, ChainFamily, get_chain_spec
from fibrous_mcp.errors import (
    ApprovalFailedError,
    FibrousMCPError,
    SubmissionFailedError,
)
from fibrous_mcp.swap.base import ChainBackend, PreparedSwap
from fibrous_mcp.swap.gas import apply_gas_multiplier
from fibrous_mcp.swap.models import GasEstimate, SwapRequest, SwapResult

logger = logging.getLogger(__name__)

NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"

# ERC-20 ABI (minimal)
ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
]


def is_native_token(address: str) -> bool:
    return address.lower() == NATIVE_TOKEN_ADDRESS


@dataclass
class TransactionReceipt:
    """The parts of a receipt the swap flow reports on."""

    tx_hash: str
    status: int
    gas_used: int
    block_number: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class EVMSigner:
    """Async signer and RPC reader for a single EVM chain."""

    def __init__(self, rpc_url: str, private_key: str, chain_id: Optional[int] = None):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self._account = Account.from_key(private_key)
        self._web3: Optional[AsyncWeb3] = None

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        return self._web3

    @property
    def address(self) -> str:
        return self._account.address

    def _token(self, token_address: str):
        return self.web3.eth.contract(
            address=AsyncWeb3.to_checksum_address(token_address),
            abi=ERC20_ABI,
        )

    async def allowance(self, token_address: str, owner: str, spender: str) -> int:
        contract = self._token(token_address)
        return await contract.functions.allowance(
            AsyncWeb3.to_checksum_address(owner),
            AsyncWeb3.to_checksum_address(spender),
        ).call()

    async def approve(self, token_address: str, spender: str, amount: int) -> str:
        contract = self._token(token_address)
        tx = await contract.functions.approve(
            AsyncWeb3.to_checksum_address(spender), amount
        ).build_transaction(
            {
                "from": self.address,
                "nonce": await self.web3.eth.get_transaction_count(self.address, "pending"),
            }
        )
        return await self._sign_and_send(tx)

    async def gas_price(self) -> int:
        return await self.web3.eth.gas_price

    async def estimate_gas(self, to: str, data: str, value: int = 0) -> int:
        return await self.web3.eth.estimate_gas(
            {
                "from": self.address,
                "to": AsyncWeb3.to_checksum_address(to),
                "data": data,
                "value": value,
            }
        )

    async def send_transaction(self, to: str, data: str, gas_price: int, value: int = 0) -> str:
        """Sign and broadcast a legacy-priced transaction.

        Returns:
            Transaction hash (0x-prefixed)
        """
        tx = {
            "from": self.address,
            "to": AsyncWeb3.to_checksum_address(to),
            "data": data,
            "value": value,
            "gasPrice": gas_price,
            "nonce": await self.web3.eth.get_transaction_count(self.address, "pending"),
            "chainId": self.chain_id or await self.web3.eth.chain_id,
        }
        tx["gas"] = await self.web3.eth.estimate_gas(tx)
        return await self._sign_and_send(tx)

    async def _sign_and_send(self, tx: dict) -> str:
        signed_tx = self._account.sign_transaction(tx)
        tx_hash = await self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        return AsyncWeb3.to_hex(tx_hash)

    async def wait_for_confirmation(self, tx_hash: str, timeout: int = 120) -> TransactionReceipt:
        """Wait until the transaction is mined (one confirmation).

        Raises:
            TimeoutError-like web3 exceptions if not mined within ``timeout``
        """
        receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        return TransactionReceipt(
            tx_hash=tx_hash,
            status=receipt["status"],
            gas_used=receipt["gasUsed"],
            block_number=receipt.get("blockNumber"),
        )


SignerFactory = Callable[[str, str, Optional[int]], EVMSigner]


class EVMBackend(ChainBackend):
    """Approve-then-swap flow for account-based chains."""

    family = ChainFamily.EVM
    generic_error = "EVM swap failed"

    def __init__(self, route_client, registry, settings, signer_factory: Optional[SignerFactory] = None):
        super().__init__(route_client, registry, settings)
        self.signer_factory = signer_factory or EVMSigner

    def _signer(self, chain_name: str, config: ChainConfig) -> EVMSigner:
        spec = get_chain_spec(chain_name)
        return self.signer_factory(config.rpc_url, config.private_key, spec.evm_chain_id)

    async def account_address(self, config: ChainConfig) -> str:
        return Account.from_key(config.private_key).address

    async def build(self, request: SwapRequest, config: ChainConfig) -> PreparedSwap:
        info = self.registry.require_router(request.chain_name)
        route = await self.fetch_calldata(request)
        return PreparedSwap(
            route=route,
            router_address=info.router_address,
            data=route.calldata,
            value=request.amount if is_native_token(request.token_in_address) else 0,
        )

    async def approve_if_needed(
        self,
        signer: EVMSigner,
        token_address: str,
        spender: str,
        amount: int,
        chain_name: Optional[str] = None,
    ) -> Optional[str]:
        """Approve ``spender`` for exactly ``amount`` unless allowance suffices.

        Returns:
            Approval transaction hash, or None when no approval was sent
        """
        if is_native_token(token_address):
            return None

        try:
            allowance = await signer.allowance(token_address, signer.address, spender)
            if allowance >= amount:
                logger.debug(f"Allowance {allowance} covers {amount}, skipping approval")
                return None

            logger.info(f"Approving {amount} of {token_address} for router {spender}")
            tx_hash = await signer.approve(token_address, spender, amount)
            receipt = await signer.wait_for_confirmation(tx_hash, self.settings.transaction_timeout)
        except Exception as e:
            raise ApprovalFailedError(f"Token approval failed: {e}", chain_name) from e

        if not receipt.succeeded:
            raise ApprovalFailedError(f"Approval transaction {tx_hash} reverted", chain_name)
        return tx_hash

    async def execute(self, request: SwapRequest, config: ChainConfig) -> SwapResult:
        signer = self._signer(request.chain_name, config)
        info = self.registry.require_router(request.chain_name)

        await self.approve_if_needed(
            signer, request.token_in_address, info.router_address, request.amount, request.chain_name
        )

        prepared = await self.build(request, config)

        try:
            network_price = await signer.gas_price()
            gas_price = apply_gas_multiplier(network_price, self.settings.gas_price_multiplier)
            tx_hash = await signer.send_transaction(
                prepared.router_address, prepared.data, gas_price, prepared.value
            )
            receipt = await signer.wait_for_confirmation(tx_hash, self.settings.transaction_timeout)
        except FibrousMCPError:
            raise
        except Exception as e:
            raise SubmissionFailedError(str(e) or self.generic_error, request.chain_name) from e

        if not receipt.succeeded:
            raise SubmissionFailedError(f"Swap transaction {tx_hash} reverted", request.chain_name)

        return SwapResult.ok(
            transaction_hash=tx_hash,
            explorer_url=self.explorer_url(request.chain_name, tx_hash),
            gas_used=str(receipt.gas_used),
            output_amount=prepared.route.output_amount,
            chain_name=request.chain_name,
        )

    async def estimate(self, request: SwapRequest, config: ChainConfig) -> GasEstimate:
        prepared = await self.build(request, config)
        signer = self._signer(request.chain_name, config)

        gas = await signer.estimate_gas(prepared.router_address, prepared.data, prepared.value)
        network_price = await signer.gas_price()
        gas_price = apply_gas_multiplier(network_price, self.settings.gas_price_multiplier)

        logger.info(f"EVM gas estimate - Gas: {gas}, Price: {gas_price}, Cost: {gas * gas_price}")
        return GasEstimate.from_ints(gas, gas_price)
