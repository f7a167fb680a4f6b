"""
Ledger client used by the relay.

The relay only needs four things from the chain: a gas price suggestion,
read-only contract calls, the signer's pending nonce and transaction
broadcast. Web3LedgerClient provides them over JSON-RPC/HTTP and converts
every library error into the relay's error taxonomy.
"""
import logging
from typing import TYPE_CHECKING, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from web3 import Web3

from .exceptions import BroadcastRejected, LedgerUnavailable
from .utils import to_hex

if TYPE_CHECKING:
    from .transaction import SignedTransaction

logger = logging.getLogger(__name__)


class LedgerClient(Protocol):
    """Protocol for the ledger collaborator"""

    def suggest_gas_price(self) -> int:
        """Return the current suggested gas price in wei"""
        ...

    def call_read_only(self, target: str, payload: bytes) -> bytes:
        """Execute an eth_call against target and return the raw result"""
        ...

    def pending_nonce(self, address: str) -> int:
        """Return the next unused nonce of address, counting pending transactions"""
        ...

    def broadcast(self, signed: "SignedTransaction") -> None:
        """Submit a signed transaction"""
        ...


class Web3LedgerClient:
    """
    LedgerClient backed by a web3 HTTP provider.

    Calls are blocking and are never retried here: a failed call is reported
    to the caller straight away.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: Optional[int] = 30,
        pool_size: int = 10,
        w3: Optional[Web3] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the ledger client

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: HTTP timeout for each call in seconds
            pool_size: Size of the HTTP connection pool, should match the
                number of request workers
            w3: Pre-built Web3 instance (mostly for tests)
            logger: Optional logger instance
        """
        self.rpc_url = rpc_url
        self.logger = logger or logging.getLogger(__name__)

        if w3 is None:
            # One pooled session shared by all worker threads, no retries
            self.session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=0)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

            request_kwargs = {"timeout": timeout} if timeout else {}
            provider = Web3.HTTPProvider(
                rpc_url,
                request_kwargs=request_kwargs,
                session=self.session,
                exception_retry_configuration=None,
            )
            w3 = Web3(provider)
        self.w3 = w3

    def chain_id(self) -> int:
        """
        Get the chain ID reported by the node.

        Raises:
            LedgerUnavailable: If the node cannot be reached
        """
        try:
            return int(self.w3.eth.chain_id)
        except Exception as e:
            raise LedgerUnavailable(f"Failed to fetch chain id: {e}") from e

    def suggest_gas_price(self) -> int:
        try:
            gas_price = int(self.w3.eth.gas_price)
        except Exception as e:
            raise LedgerUnavailable(f"Failed to suggest gas price: {e}") from e
        self.logger.debug(f"Suggested gas price: {gas_price}")
        return gas_price

    def call_read_only(self, target: str, payload: bytes) -> bytes:
        try:
            result = self.w3.eth.call({"to": target, "data": to_hex(payload)}, "latest")
        except Exception as e:
            raise LedgerUnavailable(f"Failed to call contract {target}: {e}") from e
        return bytes(result)

    def pending_nonce(self, address: str) -> int:
        try:
            return int(self.w3.eth.get_transaction_count(address, "pending"))
        except Exception as e:
            raise LedgerUnavailable(f"Failed to fetch nonce: {e}") from e

    def broadcast(self, signed: "SignedTransaction") -> None:
        """
        Send a signed transaction

        Raises:
            BroadcastRejected: If the node refuses the transaction (stale or
                colliding nonce, gas, funds) or cannot be reached
        """
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw)
        except Exception as e:
            self.logger.error(f"Failed to send transaction {signed.tx_hash}: {e}")
            raise BroadcastRejected(f"Failed to send transaction: {e}", reason=str(e)) from e

        returned = Web3.to_hex(tx_hash)
        if returned.lower() != signed.tx_hash.lower():
            self.logger.warning(f"Node returned hash {returned}, expected {signed.tx_hash}")
