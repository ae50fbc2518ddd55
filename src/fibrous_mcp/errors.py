"""Error taxonomy shared by the codec, configuration and swap layers.

Every exception carries a stable ``code`` so failures can be reported as
values (``SwapResult.error_code``) without leaking exception types to callers.
"""

from typing import Optional


class FibrousMCPError(Exception):
    """Base class for all errors raised by this package."""

    code = "Unknown"

    def __init__(self, message: str = "", chain_name: Optional[str] = None):
        super().__init__(message)
        self.chain_name = chain_name

    @property
    def message(self) -> str:
        return str(self)


class InvalidFormatError(FibrousMCPError, ValueError):
    """Amount string could not be converted."""

    code = "InvalidFormat"


class InvalidParametersError(FibrousMCPError, ValueError):
    """One or more request parameters failed validation."""

    code = "InvalidParameters"

    def __init__(self, errors: list[str], chain_name: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors), chain_name=chain_name)


class UnsupportedChainError(InvalidParametersError):
    code = "UnsupportedChain"

    def __init__(self, chain_name: str, supported: tuple[str, ...]):
        super().__init__(
            [f"Unsupported chain: {chain_name}. Supported chains: {', '.join(supported)}"],
            chain_name=chain_name,
        )


class ConfigMissingError(FibrousMCPError):
    code = "ConfigMissing"


class ConfigInvalidError(FibrousMCPError):
    code = "ConfigInvalid"


class InvalidAmountError(FibrousMCPError, ValueError):
    code = "InvalidAmount"


class MissingCredentialError(FibrousMCPError):
    """Account identifier (Starknet public key) is not configured."""

    code = "MissingCredential"


class RouterNotFoundError(FibrousMCPError):
    code = "RouterNotFound"


class ApprovalFailedError(FibrousMCPError):
    code = "ApprovalFailed"


class RouteUnavailableError(FibrousMCPError):
    """Aggregation API failed or answered with an explicit failure."""

    code = "RouteUnavailable"


class SubmissionFailedError(FibrousMCPError):
    code = "SubmissionFailed"


class EstimationFailedError(FibrousMCPError):
    """Live fee estimation failed; always absorbed into a fallback estimate."""

    code = "EstimationFailed"
