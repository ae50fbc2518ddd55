"""Value objects for swap requests, results and fee estimates."""

from dataclasses import dataclass, field
from typing import Any, Optional

from fibrous_mcp.routing.base import RouteOptions

# Kept as an alias: the public name for routing restrictions on a swap
SwapOptions = RouteOptions


@dataclass(frozen=True)
class SwapParams:
    """An incoming swap request, as received from the caller.

    ``amount`` is a smallest-unit integer string. ``slippage`` is a percentage;
    None means the server default. ``receiver_address`` None means the
    executing account receives the output.
    """

    amount: str
    token_in_address: str
    token_out_address: str
    chain_name: str
    slippage: Optional[float] = None
    receiver_address: Optional[str] = None
    options: Optional[SwapOptions] = None

    @classmethod
    def from_dict(cls, data: dict) -> "SwapParams":
        """Build from camelCase tool arguments."""
        options = data.get("options")
        if isinstance(options, dict):
            options = SwapOptions(
                direct=bool(options.get("direct", False)),
                exclude_protocols=tuple(options.get("excludeProtocols") or ()),
            )
        return cls(
            amount=data["amount"],
            token_in_address=data["tokenInAddress"],
            token_out_address=data["tokenOutAddress"],
            chain_name=data["chainName"],
            slippage=data.get("slippage"),
            receiver_address=data.get("receiverAddress"),
            options=options,
        )


@dataclass(frozen=True)
class SwapRequest:
    """A validated request with amount parsed and defaults resolved."""

    amount: int
    token_in_address: str
    token_out_address: str
    slippage: float
    receiver_address: str
    chain_name: str
    options: Optional[SwapOptions] = None


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a swap. Success carries a hash, failure carries an error."""

    success: bool
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    gas_used: Optional[str] = None
    output_amount: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    chain_name: Optional[str] = None

    def __post_init__(self):
        if self.success and (not self.transaction_hash or self.error):
            raise ValueError("Successful SwapResult needs a transaction hash and no error")
        if not self.success and (self.transaction_hash or not self.error):
            raise ValueError("Failed SwapResult needs an error and no transaction hash")

    @classmethod
    def ok(
        cls,
        transaction_hash: str,
        explorer_url: Optional[str] = None,
        gas_used: Optional[str] = None,
        output_amount: Optional[str] = None,
        chain_name: Optional[str] = None,
    ) -> "SwapResult":
        return cls(
            success=True,
            transaction_hash=transaction_hash,
            explorer_url=explorer_url,
            gas_used=gas_used,
            output_amount=output_amount,
            chain_name=chain_name,
        )

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str = "Unknown",
        chain_name: Optional[str] = None,
    ) -> "SwapResult":
        return cls(success=False, error=error, error_code=error_code, chain_name=chain_name)

    def to_dict(self) -> dict:
        if self.success:
            data: dict[str, Any] = {
                "success": True,
                "transactionHash": self.transaction_hash,
                "explorerUrl": self.explorer_url,
                "gasUsed": self.gas_used,
                "outputAmount": self.output_amount,
            }
        else:
            data = {"success": False, "error": self.error, "errorCode": self.error_code}
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class GasEstimate:
    """Fee estimate. All values are integer strings in the smallest fee unit."""

    gas_estimate: str
    gas_price: str
    estimated_cost: str
    cost_in_usd: Optional[str] = field(default=None)

    @classmethod
    def from_ints(cls, gas: int, price: int) -> "GasEstimate":
        """Estimate whose cost is gas * price."""
        return cls(gas_estimate=str(gas), gas_price=str(price), estimated_cost=str(gas * price))

    def to_dict(self) -> dict:
        data = {
            "gasEstimate": self.gas_estimate,
            "gasPrice": self.gas_price,
            "estimatedCost": self.estimated_cost,
        }
        if self.cost_in_usd is not None:
            data["costInUSD"] = self.cost_in_usd
        return data
