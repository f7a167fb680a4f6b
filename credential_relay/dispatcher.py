"""
Request dispatcher for the credential relay.

Maps a JSON-RPC call onto one of the three relay flows:

- mintNFT: encode awardItem and submit it to the credential contract
- balanceOf: serve the credential balance from the cache, or read it from
  the contract and cache it
- sendEther: resolve the sender's balance, pass it through the
  authorization gate and only then submit the value transfer

The dispatcher holds no per-request state and is safe to call from many
worker threads at once.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

from eth_account.signers.local import LocalAccount
from pydantic import ValidationError

from ._rate_limited_log import rate_limited_log
from .abi import AWARD_ITEM, BALANCE_OF, decode_return, encode_call, function_spec
from .authorization import Denied, authorize
from .cache import DEFAULT_CAPACITY, BalanceCache
from .exceptions import AuthorizationDenied, LedgerUnavailable, MethodNotFound, RelayError
from .ledger import LedgerClient
from .models import (
    INVALID_REQUEST,
    BalanceParams,
    MintParams,
    PositionalParams,
    RpcRequest,
    RpcResponse,
    SendParams,
)
from .transaction import TransactionSubmitter
from .utils import normalize_address

logger = logging.getLogger(__name__)

DEFAULT_MINT_GAS_LIMIT = 100_000
DEFAULT_TRANSFER_GAS_LIMIT = 21_000

INTERNAL_ERROR = "internal error"


@dataclass
class RelayContext:
    """
    Process-wide state shared by every request.

    Built once at startup; the signing key inside the submitter and the
    contract address are read-only afterwards, the balance cache is
    internally synchronized.
    """
    ledger: LedgerClient
    submitter: TransactionSubmitter
    cache: BalanceCache
    credential_contract: str
    mint_gas_limit: int = DEFAULT_MINT_GAS_LIMIT
    transfer_gas_limit: int = DEFAULT_TRANSFER_GAS_LIMIT

    @classmethod
    def create(
        cls,
        ledger: LedgerClient,
        account: Optional[LocalAccount],
        chain_id: int,
        credential_contract: str,
        cache_size: int = DEFAULT_CAPACITY,
        mint_gas_limit: int = DEFAULT_MINT_GAS_LIMIT,
        transfer_gas_limit: int = DEFAULT_TRANSFER_GAS_LIMIT
    ) -> "RelayContext":
        """
        Wire up a context from its collaborators.

        Args:
            ledger: Ledger client
            account: Relay signing account
            chain_id: Chain ID used for EIP-155 signatures
            credential_contract: Address of the credential (NFT) contract
            cache_size: Balance cache capacity
            mint_gas_limit: Gas limit for awardItem calls
            transfer_gas_limit: Gas limit for plain value transfers
        """
        return cls(
            ledger=ledger,
            submitter=TransactionSubmitter(ledger, account, chain_id),
            cache=BalanceCache(maxsize=cache_size),
            credential_contract=normalize_address(credential_contract),
            mint_gas_limit=mint_gas_limit,
            transfer_gas_limit=transfer_gas_limit,
        )


class Dispatcher:
    """Validates JSON-RPC requests and runs the matching relay flow."""

    def __init__(self, context: RelayContext, logger: Optional[logging.Logger] = None):
        self.context = context
        self.logger = logger or logging.getLogger(__name__)
        self._methods: Dict[str, Tuple[Type[PositionalParams], Callable[[Any], Dict[str, str]]]] = {
            "mintNFT": (MintParams, self._mint_flow),
            "balanceOf": (BalanceParams, self._balance_flow),
            "sendEther": (SendParams, self._transfer_flow),
        }

    # ------------------------------------------------------------------
    # Envelope handling
    # ------------------------------------------------------------------

    def handle_raw(self, body: Union[bytes, str]) -> Dict[str, Any]:
        """Decode a raw request body and dispatch it."""
        try:
            payload = json.loads(body)
        except (TypeError, ValueError):
            self.logger.debug("Rejected request body that is not valid JSON")
            return RpcResponse.failure(None, INVALID_REQUEST).to_dict()
        return self.dispatch(payload)

    def dispatch(self, payload: Any) -> Dict[str, Any]:
        """
        Run one JSON-RPC request to completion.

        Args:
            payload: Decoded request body

        Returns:
            Response envelope as a dict, with either a result or an error
        """
        try:
            request = RpcRequest.model_validate(payload)
        except ValidationError:
            return RpcResponse.failure(_salvage_id(payload), INVALID_REQUEST).to_dict()

        try:
            result = self._route(request)
        except LedgerUnavailable as e:
            rate_limited_log(f"Ledger unavailable: {e}", logger_instance=self.logger)
            return RpcResponse.failure(request.id, str(e)).to_dict()
        except RelayError as e:
            self.logger.info(f"{request.method} (id={request.id}) failed: {e}")
            return RpcResponse.failure(request.id, str(e)).to_dict()
        except Exception:
            self.logger.exception(f"Unexpected error while handling {request.method} (id={request.id})")
            return RpcResponse.failure(request.id, INTERNAL_ERROR).to_dict()

        return RpcResponse.success(request.id, result).to_dict()

    def _route(self, request: RpcRequest) -> Dict[str, str]:
        entry = self._methods.get(request.method)
        if entry is None:
            raise MethodNotFound(request.method)
        params_model, flow = entry
        params = params_model.from_params(request.params)
        self.logger.debug(f"Dispatching {request.method} (id={request.id})")
        return flow(params)

    def _mint_flow(self, params: MintParams) -> Dict[str, str]:
        return {"tx_hash": self.mint_nft(params.recipient, params.token_uri)}

    def _balance_flow(self, params: BalanceParams) -> Dict[str, str]:
        return {"balance": str(self.balance_of(params.address))}

    def _transfer_flow(self, params: SendParams) -> Dict[str, str]:
        return {"tx_hash": self.send_ether(params.sender, params.receiver, params.amount)}

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def mint_nft(self, recipient: str, token_uri: str) -> str:
        """
        Mint a credential for recipient.

        Returns:
            Hash of the broadcast awardItem transaction
        """
        call_data = encode_call(function_spec(AWARD_ITEM), [recipient, token_uri])
        signed = self.context.submitter.submit(
            self.context.credential_contract,
            0,
            self.context.mint_gas_limit,
            call_data,
        )
        return signed.tx_hash

    def balance_of(self, address: str) -> int:
        """
        Credential balance of address, from the cache when possible.

        The cache is only written after the contract read and decode both
        succeed.
        """
        balance, found = self.context.cache.get(address)
        if found:
            self.logger.debug(f"Balance cache hit for {address}")
            return balance

        spec = function_spec(BALANCE_OF)
        output = self.context.ledger.call_read_only(
            self.context.credential_contract,
            encode_call(spec, [address]),
        )
        balance = decode_return(spec, output)
        self.context.cache.put(address, balance)
        return balance

    def send_ether(self, sender: str, receiver: str, amount: int) -> str:
        """
        Transfer amount wei to receiver if sender holds a credential.

        Raises:
            AuthorizationDenied: If the sender's balance is zero
        """
        decision = authorize(self.balance_of(sender))
        if isinstance(decision, Denied):
            raise AuthorizationDenied(decision.reason)

        signed = self.context.submitter.submit(
            receiver,
            amount,
            self.context.transfer_gas_limit,
        )
        return signed.tx_hash


def _salvage_id(payload: Any) -> Optional[int]:
    """Best-effort correlation id for a request that failed validation."""
    if isinstance(payload, dict):
        request_id = payload.get("id")
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            return request_id
    return None
