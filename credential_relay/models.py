"""
Data models for the credential relay JSON-RPC surface.
"""
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, model_validator

from .exceptions import RequestMalformed
from .utils import normalize_address

JSONRPC_VERSION = "2.0"

INVALID_REQUEST = "invalid request"
INVALID_PARAMS = "invalid parameters"

MAX_UINT256 = 2**256 - 1

Address = Annotated[StrictStr, AfterValidator(normalize_address)]


class RpcRequest(BaseModel):
    """JSON-RPC request envelope"""
    jsonrpc: str = JSONRPC_VERSION
    method: StrictStr
    params: List[Any] = Field(default_factory=list)
    id: Optional[StrictInt] = None


class RpcErrorBody(BaseModel):
    """Error member of a JSON-RPC response"""
    message: str


class RpcResponse(BaseModel):
    """JSON-RPC response envelope, carrying either a result or an error"""
    jsonrpc: str = JSONRPC_VERSION
    id: Optional[int] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[RpcErrorBody] = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> "RpcResponse":
        if (self.result is None) == (self.error is None):
            raise ValueError("response must carry exactly one of result or error")
        return self

    @classmethod
    def success(cls, request_id: Optional[int], result: Dict[str, Any]) -> "RpcResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Optional[int], message: str) -> "RpcResponse":
        return cls(id=request_id, error=RpcErrorBody(message=message))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.error is not None:
            data["error"] = self.error.model_dump()
        else:
            data["result"] = self.result
        data["id"] = self.id
        return data


class PositionalParams(BaseModel):
    """
    Base for per-method parameter schemas.

    JSON-RPC params arrive as a positional list; fields are matched to
    positions in declaration order and the list length must match exactly.
    """
    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_params(cls, params: List[Any]) -> "PositionalParams":
        """
        Validate a positional parameter list.

        Raises:
            RequestMalformed: If the arity or any type is wrong
        """
        names = list(cls.model_fields)
        if len(params) != len(names):
            raise RequestMalformed(INVALID_PARAMS)
        try:
            return cls.model_validate(dict(zip(names, params)))
        except ValidationError as e:
            raise RequestMalformed(INVALID_PARAMS) from e


class MintParams(PositionalParams):
    """mintNFT: [recipient, metadata URI]"""
    recipient: Address
    token_uri: StrictStr


class BalanceParams(PositionalParams):
    """balanceOf: [address]"""
    address: Address


class SendParams(PositionalParams):
    """sendEther: [sender, receiver, amount in wei]"""
    sender: Address
    receiver: Address
    amount: Annotated[StrictInt, Field(ge=0, le=MAX_UINT256)]
