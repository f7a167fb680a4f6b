"""
Exceptions for the credential relay.

Every exception here is terminal for the request that raised it: the
dispatcher turns it into a JSON-RPC error payload and the process carries on.
"""
from typing import Optional


class RelayError(Exception):
    """Base exception for all relay errors."""
    pass


class ConfigurationError(RelayError):
    """Raised when the relay cannot be configured at startup."""
    pass


class RequestMalformed(RelayError):
    """Raised when a request envelope or its parameters have the wrong shape."""
    pass


class MethodNotFound(RequestMalformed):
    """Raised when a request names a method the relay does not serve."""

    def __init__(self, method: Optional[str] = None):
        self.method = method
        super().__init__("method not found")


class EncodingError(RelayError):
    """Raised when call arguments do not match a function's declared inputs."""
    pass


class DecodingError(RelayError):
    """Raised when a return payload does not match a function's declared outputs."""
    pass


class LedgerUnavailable(RelayError):
    """Raised when a read-only ledger call (gas price, eth_call, nonce) fails."""
    pass


class BroadcastRejected(RelayError):
    """Raised when the ledger refuses a signed transaction."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(message)


class SigningError(RelayError):
    """Raised when the signing key is missing or malformed, or signing fails."""
    pass


class AuthorizationDenied(RelayError):
    """Raised when the sender does not hold the credential required to transfer."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
