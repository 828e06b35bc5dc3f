#!/usr/bin/env python3
"""
Example of paying several recipients from one funded wallet.
"""
import json
import os

from ethereum_batch import ChainNode, NetworkConfig, StaticNodeContext


def main():
    """
    Send a small amount of Sepolia ETH to each recipient.

    This example shows how to:
    1. Resolve the RPC URL and chain id of a named network
    2. Check the gas price once for the whole batch
    3. Run a transfer per input item with the error policy collecting failures
    """
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    network = "sepolia"
    params = {
        "rpcUrl": NetworkConfig.get_rpc_url(network),
        "chainId": NetworkConfig.get_network(network)["chainId"],
    }
    node = ChainNode()

    gas = node.execute(StaticNodeContext(dict(params, operation="getGas")))[0]
    print(f"Gas on {network}: {json.dumps(gas.data)}")

    recipients = [
        {"to": "0x000000000000000000000000000000000000dEaD", "amount": "0.0001"},
        {"to": "0x1234567890123456789012345678901234567890", "amount": "0.0002"},
    ]
    results = node.execute(StaticNodeContext(
        dict(
            params,
            operation="transfer",
            privateKeySource="credential",
            toAddressSource="input",
            valueSource="input",
            errorPolicy="collectErrors",
        ),
        recipients,
        credentials={"privateKey": PRIVATE_KEY},
    ))

    for item in results:
        print(json.dumps(item.to_dict(), indent=2))


if __name__ == "__main__":
    main()
