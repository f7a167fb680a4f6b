"""
Tests for the ABI codec.
"""
import pytest
from eth_abi import decode, encode
from web3 import Web3

from credential_relay.abi import (
    AWARD_ITEM,
    BALANCE_OF,
    CREDENTIAL_ABI,
    FUNCTION_SPECS,
    FunctionSpec,
    decode_return,
    encode_call,
    function_spec,
    load_function_specs,
)
from credential_relay.exceptions import DecodingError, EncodingError
from conftest import SENDER, checksum, uint_output


def test_function_table_is_closed():
    """The interface holds exactly the balance query and the mint operation"""
    assert set(FUNCTION_SPECS) == {BALANCE_OF, AWARD_ITEM}
    assert FUNCTION_SPECS[BALANCE_OF] == FunctionSpec("balanceOf", ("address",), ("uint256",))
    assert FUNCTION_SPECS[AWARD_ITEM] == FunctionSpec("awardItem", ("address", "string"), ("uint256",))


def test_function_table_is_read_only():
    with pytest.raises(TypeError):
        FUNCTION_SPECS["transfer"] = FunctionSpec("transfer", (), ())


def test_load_function_specs_skips_non_functions():
    abi = CREDENTIAL_ABI + [{"type": "event", "name": "Transfer", "inputs": []}]
    specs = load_function_specs(abi)
    assert "Transfer" not in specs


def test_selectors_match_erc721():
    assert function_spec(BALANCE_OF).selector == bytes.fromhex("70a08231")
    assert function_spec(AWARD_ITEM).selector == bytes(Web3.keccak(text="awardItem(address,string)")[:4])


def test_unknown_function():
    with pytest.raises(EncodingError, match="not found"):
        function_spec("burn")


def test_encode_balance_of():
    spec = function_spec(BALANCE_OF)
    payload = encode_call(spec, [checksum(SENDER)])

    assert payload[:4] == spec.selector
    assert len(payload) == 4 + 32
    (decoded,) = decode(["address"], payload[4:])
    assert decoded.lower() == checksum(SENDER).lower()


def test_encode_award_item():
    spec = function_spec(AWARD_ITEM)
    payload = encode_call(spec, [checksum(SENDER), "ipfs://token/1"])

    assert payload[:4] == spec.selector
    recipient, uri = decode(["address", "string"], payload[4:])
    assert recipient.lower() == checksum(SENDER).lower()
    assert uri == "ipfs://token/1"


def test_encode_wrong_arity():
    with pytest.raises(EncodingError, match="expects 2 argument"):
        encode_call(function_spec(AWARD_ITEM), [checksum(SENDER)])


@pytest.mark.parametrize("args", [
    ["not-an-address"],
    [12345],
    [None],
])
def test_encode_wrong_type(args):
    with pytest.raises(EncodingError, match="not a valid address"):
        encode_call(function_spec(BALANCE_OF), args)


def test_encode_wrong_string_type():
    with pytest.raises(EncodingError, match="not a valid string"):
        encode_call(function_spec(AWARD_ITEM), [checksum(SENDER), 42])


@pytest.mark.parametrize("value", [0, 1, 3, 2**255, 2**256 - 1])
def test_balance_round_trip(value):
    """Encode a balance query, decode a crafted uint256 return"""
    spec = function_spec(BALANCE_OF)
    encode_call(spec, [checksum(SENDER)])
    assert decode_return(spec, uint_output(value)) == value


def test_decode_empty_payload():
    with pytest.raises(DecodingError, match="empty return data"):
        decode_return(function_spec(BALANCE_OF), b"")


def test_decode_misaligned_payload():
    with pytest.raises(DecodingError, match="not a multiple of 32"):
        decode_return(function_spec(BALANCE_OF), b"\x00" * 31)


def test_decode_too_many_words():
    with pytest.raises(DecodingError, match="expected 32 bytes"):
        decode_return(function_spec(BALANCE_OF), uint_output(1) + uint_output(2))


def test_decode_multiple_outputs():
    spec = FunctionSpec("pair", (), ("uint256", "string"))
    assert decode_return(spec, encode(["uint256", "string"], [5, "x"])) == (5, "x")


def test_decode_malformed_dynamic_output():
    spec = FunctionSpec("name", (), ("string",))
    # Offset word points past the end of the data
    with pytest.raises(DecodingError):
        decode_return(spec, uint_output(64))


def test_decode_no_outputs():
    assert decode_return(FunctionSpec("ping", (), ()), b"") is None
