"""
Transaction building, signing and submission.

Transactions are legacy (type 0) transactions signed with an EIP-155 chain
ID. Nonces come from the ledger's pending transaction count and are handed
out under a per-signer lock, so concurrent requests never sign two
transactions with the same nonce.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .exceptions import SigningError
from .ledger import LedgerClient
from .utils import normalize_address, sanitize_tx, to_hex

logger = logging.getLogger(__name__)

SigningKey = Union[LocalAccount, str, bytes]


@dataclass(frozen=True)
class UnsignedTransaction:
    """A transfer or contract call waiting to be signed."""
    destination: str
    value: int
    gas_limit: int
    gas_price: int
    payload: bytes
    nonce: int

    def as_dict(self, chain_id: int) -> Dict[str, Any]:
        """Transaction fields in the form eth-account signs."""
        return {
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
            "to": self.destination,
            "value": self.value,
            "data": self.payload,
            "chainId": chain_id,
        }


@dataclass(frozen=True)
class SignedTransaction:
    """A signed, network-ready transaction and its hash."""
    unsigned: UnsignedTransaction
    raw: bytes
    tx_hash: str
    sender: str
    chain_id: int


def build(
    destination: str,
    value: int,
    gas_limit: int,
    payload: bytes,
    nonce: int,
    gas_price: int
) -> UnsignedTransaction:
    """
    Assemble an unsigned transaction.

    Args:
        destination: Recipient or contract address
        value: Amount to transfer in wei (may be zero)
        gas_limit: Gas limit
        payload: Call data (empty for plain transfers)
        nonce: Sequence number of the signer
        gas_price: Gas price in wei

    Returns:
        UnsignedTransaction

    Raises:
        SigningError: If any field is malformed
    """
    try:
        destination = normalize_address(destination)
    except ValueError as e:
        raise SigningError(f"Malformed transaction: {e}") from e

    for field_name, number in (("value", value), ("gas_limit", gas_limit),
                               ("nonce", nonce), ("gas_price", gas_price)):
        if not isinstance(number, int) or isinstance(number, bool) or number < 0:
            raise SigningError(f"Malformed transaction: {field_name} must be a non-negative integer")

    return UnsignedTransaction(
        destination=destination,
        value=value,
        gas_limit=gas_limit,
        gas_price=gas_price,
        payload=bytes(payload),
        nonce=nonce,
    )


def _as_account(key: Optional[SigningKey]) -> LocalAccount:
    if key is None:
        raise SigningError("Signing key is not available")
    if isinstance(key, LocalAccount):
        return key
    try:
        return Account.from_key(key)
    except Exception as e:
        # Exception text may contain key material
        raise SigningError("Malformed signing key") from e


def sign(unsigned: UnsignedTransaction, key: Optional[SigningKey], chain_id: int) -> SignedTransaction:
    """
    Sign a transaction for the given chain.

    Signing is deterministic: the same transaction, key and chain ID always
    produce the same raw bytes and hash.

    Raises:
        SigningError: If the key is absent or malformed, or signing fails
    """
    account = _as_account(key)
    try:
        signed = account.sign_transaction(unsigned.as_dict(chain_id))
    except Exception as e:
        raise SigningError(f"Transaction signing failed: {e}") from e

    return SignedTransaction(
        unsigned=unsigned,
        raw=bytes(signed.raw_transaction),
        tx_hash=to_hex(signed.hash),
        sender=account.address,
        chain_id=chain_id,
    )


class NonceTracker:
    """
    Hands out sequence numbers for one signer.

    Each reservation reads the signer's pending transaction count from the
    ledger and never goes below the last nonce handed out, so transactions
    signed concurrently get distinct nonces even before the ledger has seen
    them. A nonce whose transaction never reached the ledger is released and
    handed out again before any new one, so no gap is left behind it.
    """

    def __init__(self, ledger: LedgerClient, address: str):
        self.ledger = ledger
        self.address = address
        self._next: Optional[int] = None
        self._released: Set[int] = set()
        self._lock = threading.Lock()

    def reserve(self) -> int:
        """
        Reserve the next nonce.

        Raises:
            LedgerUnavailable: If the pending count cannot be read
        """
        with self._lock:
            observed = self.ledger.pending_nonce(self.address)
            # Released nonces below the pending count were used by someone else
            self._released = {n for n in self._released if n >= observed}
            if self._released:
                nonce = min(self._released)
                self._released.remove(nonce)
            else:
                nonce = observed if self._next is None else max(observed, self._next)
                self._next = nonce + 1
        logger.debug(f"Reserved nonce {nonce} for {self.address} (ledger reported {observed})")
        return nonce

    def release(self, nonce: int) -> None:
        """
        Give back a reserved nonce whose transaction was not broadcast.

        Nonces reserved by other callers stay reserved.
        """
        with self._lock:
            if self._next is None or nonce >= self._next:
                return
            self._released.add(nonce)
            # Fold released nonces at the top back into the counter
            while self._next - 1 in self._released:
                self._next -= 1
                self._released.remove(self._next)
        logger.debug(f"Released nonce {nonce} for {self.address}")


class TransactionSubmitter:
    """
    Builds, signs and broadcasts transactions for the relay signer.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        account: Optional[LocalAccount],
        chain_id: int,
        logger: Optional[logging.Logger] = None
    ):
        self.ledger = ledger
        self.account = account
        self.chain_id = chain_id
        self.logger = logger or logging.getLogger(__name__)
        self.nonces = NonceTracker(ledger, account.address) if account else None

    @property
    def address(self) -> str:
        """
        Get the signer address

        Raises:
            SigningError: If no signing key is loaded
        """
        if self.account is None:
            raise SigningError("Signing key is not available")
        return self.account.address

    def gas_price(self) -> int:
        """Current suggested gas price; LedgerUnavailable propagates."""
        return self.ledger.suggest_gas_price()

    def submit(self, destination: str, value: int, gas_limit: int, payload: bytes = b"") -> SignedTransaction:
        """
        Build, sign and broadcast a transaction.

        Args:
            destination: Recipient or contract address
            value: Amount in wei
            gas_limit: Gas limit
            payload: Call data

        Returns:
            The broadcast SignedTransaction

        Raises:
            LedgerUnavailable: If the gas price or nonce cannot be fetched
            SigningError: If the key or transaction is malformed
            BroadcastRejected: If the ledger refuses the transaction
        """
        if self.account is None or self.nonces is None:
            raise SigningError("Signing key is not available")

        gas_price = self.gas_price()
        nonce = self.nonces.reserve()
        try:
            unsigned = build(destination, value, gas_limit, payload, nonce, gas_price)
            signed = sign(unsigned, self.account, self.chain_id)
            self.logger.debug(f"Broadcasting transaction: {sanitize_tx(unsigned.as_dict(self.chain_id))}")
            self.ledger.broadcast(signed)
        except Exception:
            # The reserved nonce was not consumed on chain
            self.nonces.release(nonce)
            raise

        self.logger.info(f"Transaction sent: {signed.tx_hash}")
        return signed
