"""
ABI codec for the credential contract.

Encodes typed function calls into call data and decodes typed return values,
driven by a static interface description loaded once at import time.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from eth_abi import decode, encode, is_encodable
from eth_abi.exceptions import DecodingError as AbiDecodingError
from eth_abi.exceptions import EncodingError as AbiEncodingError
from web3 import Web3

from .exceptions import DecodingError, EncodingError

logger = logging.getLogger(__name__)

BALANCE_OF = "balanceOf"
AWARD_ITEM = "awardItem"

# Interface of the credential (ERC-721) contract used by the relay
CREDENTIAL_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"}
        ],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "player", "type": "address"},
            {"internalType": "string", "name": "tokenURI", "type": "string"}
        ],
        "name": "awardItem",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]


@dataclass(frozen=True)
class FunctionSpec:
    """A named function signature from the contract interface."""
    name: str
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        # Keccak-256, not NIST SHA3-256
        return bytes(Web3.keccak(text=self.signature)[:4])


def load_function_specs(abi: Sequence[Dict[str, Any]]) -> Mapping[str, FunctionSpec]:
    """
    Build a read-only function table from ABI JSON entries.

    Args:
        abi: Contract ABI as a list of dicts

    Returns:
        Mapping of function name to FunctionSpec
    """
    specs: Dict[str, FunctionSpec] = {}
    for entry in abi:
        if entry.get("type") != "function":
            continue
        specs[entry["name"]] = FunctionSpec(
            name=entry["name"],
            inputs=tuple(inp["type"] for inp in entry.get("inputs", [])),
            outputs=tuple(out["type"] for out in entry.get("outputs", [])),
        )
    return MappingProxyType(specs)


FUNCTION_SPECS = load_function_specs(CREDENTIAL_ABI)


def function_spec(name: str) -> FunctionSpec:
    """
    Look up a function of the credential interface.

    Raises:
        EncodingError: If the interface has no such function
    """
    try:
        return FUNCTION_SPECS[name]
    except KeyError:
        raise EncodingError(f"Function {name} not found in ABI")


def encode_call(spec: FunctionSpec, args: Sequence[Any]) -> bytes:
    """
    ABI-encode a function call.

    Args:
        spec: Function being called
        args: Positional arguments, addresses in checksummed form

    Returns:
        4-byte selector followed by the encoded arguments

    Raises:
        EncodingError: If the argument count or types do not match the inputs
    """
    args = tuple(args)
    if len(args) != len(spec.inputs):
        raise EncodingError(
            f"{spec.name} expects {len(spec.inputs)} argument(s), got {len(args)}"
        )

    for index, (abi_type, value) in enumerate(zip(spec.inputs, args)):
        if not is_encodable(abi_type, value):
            raise EncodingError(
                f"Argument {index} of {spec.name} is not a valid {abi_type}: {value!r}"
            )

    try:
        encoded = encode(list(spec.inputs), list(args))
    except AbiEncodingError as e:
        raise EncodingError(f"Failed to pack {spec.name} arguments: {e}") from e

    return spec.selector + encoded


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("(")


def decode_return(spec: FunctionSpec, payload: bytes) -> Any:
    """
    ABI-decode the return data of a function call.

    Args:
        spec: Function that produced the data
        payload: Raw return data

    Returns:
        The single decoded value, a tuple for several outputs, or None when
        the function declares no outputs

    Raises:
        DecodingError: If the payload length or contents do not match the outputs
    """
    if not spec.outputs:
        return None

    data = bytes(payload)
    if not data:
        raise DecodingError(f"Failed to unpack {spec.name} output: empty return data")
    if len(data) % 32:
        raise DecodingError(
            f"Failed to unpack {spec.name} output: length {len(data)} is not a multiple of 32"
        )
    if not any(_is_dynamic(t) for t in spec.outputs) and len(data) != 32 * len(spec.outputs):
        raise DecodingError(
            f"Failed to unpack {spec.name} output: expected {32 * len(spec.outputs)} bytes, got {len(data)}"
        )

    try:
        decoded = decode(list(spec.outputs), data)
    except AbiDecodingError as e:
        raise DecodingError(f"Failed to unpack {spec.name} output: {e}") from e

    if len(decoded) == 1:
        return decoded[0]
    return decoded
