#!/usr/bin/env python3
"""
Simple example of talking to a running credential relay.
"""
import os
import requests


def call(relay_url, method, params, request_id):
    """Send one JSON-RPC request and return the decoded response."""
    body = {"jsonrpc": "2.0", "method": method, "params": params, "id": request_id}
    response = requests.post(relay_url, json=body, timeout=30)
    response.raise_for_status()
    return response.json()


def main():
    """
    Demonstrate the three relay methods.

    This example shows how to:
    1. Mint a credential for a holder
    2. Query the holder's credential balance
    3. Forward a value transfer on behalf of the holder
    """
    RELAY_URL = os.environ.get("RELAY_URL", "http://127.0.0.1:8080/rpc")
    HOLDER = os.environ.get("HOLDER_ADDRESS")
    RECEIVER = os.environ.get("RECEIVER_ADDRESS")

    if not HOLDER or not RECEIVER:
        print("ERROR: HOLDER_ADDRESS and RECEIVER_ADDRESS environment variables are required")
        return

    minted = call(RELAY_URL, "mintNFT", [HOLDER, "ipfs://example/credential.json"], 1)
    print(f"mintNFT: {minted}")

    # The mint has to be mined before the balance reflects it
    balance = call(RELAY_URL, "balanceOf", [HOLDER], 2)
    print(f"balanceOf: {balance}")

    transfer = call(RELAY_URL, "sendEther", [HOLDER, RECEIVER, 10**15], 3)
    if "error" in transfer:
        print(f"sendEther refused: {transfer['error']['message']}")
    else:
        print(f"Transfer sent: {transfer['result']['tx_hash']}")


if __name__ == "__main__":
    main()
