"""
Utility functions for the credential relay.
"""
import re
from typing import Any, Dict

from web3 import Web3

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: Any) -> str:
    """
    Decode an address from its textual form into canonical EIP-55 form.

    Any letter case is accepted; mixed-case input does not have to carry a
    valid checksum. Two spellings of the same 20 bytes normalize to the same
    string.

    Args:
        value: 0x-prefixed, 40 hex digit address string

    Returns:
        Checksummed address string

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value.lower())


def to_hex(data: bytes) -> str:
    """Return 0x-prefixed hex for raw bytes."""
    return "0x" + bytes(data).hex()


def sanitize_tx(tx: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shorten a transaction dict for logging.

    Call data is replaced with its length so metadata URIs and large
    payloads do not end up in the logs verbatim.
    """
    result = dict(tx)
    data = result.get("data")
    if data:
        result["data"] = f"[{len(data)} bytes]"
    return result
