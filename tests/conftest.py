"""
Pytest fixtures for the credential relay tests.
"""
import pytest
from unittest.mock import MagicMock
from eth_abi import encode
from eth_account import Account
from web3 import Web3
from web3.providers.rpc import HTTPProvider

from credential_relay._rate_limited_log import reset_rate_limited_log
from credential_relay.config import NetworkConfig
from credential_relay.dispatcher import Dispatcher, RelayContext

# Constants for testing
TEST_RPC_URL = "https://rpc.example.com"
TEST_CONTRACT = "0x1234567890123456789012345678901234567890"
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_CHAIN_ID = 11155111
TEST_GAS_PRICE = 1000000000  # 1 gwei
TEST_NONCE = 7

SENDER = "0xABC0000000000000000000000000000000000ABC"
RECEIVER = "0xDEF0000000000000000000000000000000000DEF"


def checksum(address):
    """Canonical form the relay uses for cache keys and transactions"""
    return Web3.to_checksum_address(address.lower())


def uint_output(value):
    """Return data of a function returning a single uint256"""
    return encode(["uint256"], [value])


@pytest.fixture(autouse=True)
def _reset_module_state():
    """Module-level caches must not leak between tests."""
    reset_rate_limited_log()
    NetworkConfig._networks_cache = None
    yield
    reset_rate_limited_log()
    NetworkConfig._networks_cache = None


@pytest.fixture
def rpc_responses():
    """
    JSON-RPC results served by the stubbed HTTP provider, keyed by method.

    A value that is a dict with an "error" key is served as a JSON-RPC error.
    """
    return {
        "eth_chainId": hex(TEST_CHAIN_ID),
        "eth_gasPrice": hex(TEST_GAS_PRICE),
        "eth_getTransactionCount": hex(TEST_NONCE),
        "eth_call": "0x" + uint_output(3).hex(),
        "eth_sendRawTransaction": "0x" + "ab" * 32,
    }


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch, rpc_responses):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    Works for all tests because it is autouse.
    """
    calls = []

    def _dummy(self, method, params=None, _=None):      # signature match
        calls.append((method, params))
        result = rpc_responses.get(method, "0x0")
        if isinstance(result, dict) and "error" in result:
            return {"jsonrpc": "2.0", "id": 1, "error": result["error"]}
        return {"jsonrpc": "2.0", "id": 1, "result": result}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)
    return calls


@pytest.fixture
def rpc_calls(_patch_http_provider):
    """(method, params) of every JSON-RPC call made through HTTPProvider"""
    return _patch_http_provider


@pytest.fixture
def account():
    """Create a deterministic test account"""
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def ledger():
    """LedgerClient double: balance 3, fixed gas price and pending nonce"""
    ledger = MagicMock()
    ledger.suggest_gas_price.return_value = TEST_GAS_PRICE
    ledger.pending_nonce.return_value = TEST_NONCE
    ledger.call_read_only.return_value = uint_output(3)
    ledger.broadcast.return_value = None
    return ledger


@pytest.fixture
def context(ledger, account):
    return RelayContext.create(
        ledger=ledger,
        account=account,
        chain_id=TEST_CHAIN_ID,
        credential_contract=TEST_CONTRACT,
    )


@pytest.fixture
def dispatcher(context):
    return Dispatcher(context)
