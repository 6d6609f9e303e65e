"""
Error taxonomy for the source verifier.

Every error is fatal for a run; the CLI is the only place that catches them.
"""

from typing import Any, Optional


class VerificationError(Exception):
    """Base class. Carries the contract being verified, when known."""

    def __init__(self, message: str, contract_name: str = "", address: str = ""):
        super().__init__(message)
        self.message = message
        self.contract_name = contract_name
        self.address = address


class ConfigurationError(VerificationError):
    pass


class UpstreamAPIError(VerificationError):
    """The verification API answered with a non-OK status (or not at all)."""

    def __init__(self, message: str, address: str = "", payload: Any = None):
        super().__init__(message, address=address)
        self.payload = payload


class MalformedResponse(VerificationError):
    pass


class LocalFileMissing(VerificationError):
    def __init__(self, message: str, path: str, local_path: str,
                 contract_name: str = "", address: str = ""):
        super().__init__(message, contract_name, address)
        self.path = path
        self.local_path = local_path


class SourceMismatch(VerificationError):
    def __init__(self, result):
        if result.path is None:
            message = f"Unexpected source found at {result.address} for {result.contract_name}"
        else:
            message = (f"Unexpected source file {result.path} found at "
                       f"{result.address} for {result.contract_name}")
        super().__init__(message, result.contract_name, result.address)
        self.result = result

    @property
    def path(self) -> Optional[str]:
        return self.result.path


class InvariantViolation(VerificationError):
    pass


class ChainReadError(VerificationError):
    """A view call against the upgrade contract failed."""
