"""
credential-relay: a JSON-RPC relay that mints credentials, reports credential
balances and forwards value transfers only for credential holders.
"""
from .abi import FUNCTION_SPECS, FunctionSpec, decode_return, encode_call, function_spec
from .authorization import Allowed, Denied, authorize
from .cache import BalanceCache
from .config import NetworkConfig, RelayConfig
from .dispatcher import Dispatcher, RelayContext
from .exceptions import (
    AuthorizationDenied,
    BroadcastRejected,
    ConfigurationError,
    DecodingError,
    EncodingError,
    LedgerUnavailable,
    MethodNotFound,
    RelayError,
    RequestMalformed,
    SigningError,
)
from .keys import KeyProvider, KeystoreKeyProvider, PrivateKeyProvider
from .ledger import LedgerClient, Web3LedgerClient
from .transaction import NonceTracker, SignedTransaction, TransactionSubmitter, UnsignedTransaction, build, sign
from .version import __version__

__all__ = [
    "FUNCTION_SPECS",
    "FunctionSpec",
    "decode_return",
    "encode_call",
    "function_spec",
    "Allowed",
    "Denied",
    "authorize",
    "BalanceCache",
    "NetworkConfig",
    "RelayConfig",
    "Dispatcher",
    "RelayContext",
    "AuthorizationDenied",
    "BroadcastRejected",
    "ConfigurationError",
    "DecodingError",
    "EncodingError",
    "LedgerUnavailable",
    "MethodNotFound",
    "RelayError",
    "RequestMalformed",
    "SigningError",
    "KeyProvider",
    "KeystoreKeyProvider",
    "PrivateKeyProvider",
    "LedgerClient",
    "Web3LedgerClient",
    "NonceTracker",
    "SignedTransaction",
    "TransactionSubmitter",
    "UnsignedTransaction",
    "build",
    "sign",
    "__version__",
]
