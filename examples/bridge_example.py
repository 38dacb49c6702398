#!/usr/bin/env python3
"""
Example of bridging ETH from Sepolia to the Yafa L2 with the library API.
"""
import sys

from yafa_bridge import (
    BridgeConfig,
    BridgeError,
    LocalSigner,
    Web3Connector,
    bridge_eth,
)
from yafa_bridge.utils import parse_ether, format_ether


def main():
    """
    Demonstrate a value deposit through the OptimismPortal.

    This example shows how to:
    1. Build the configuration from the environment (.env is honoured)
    2. Connect to both chains
    3. Submit the deposit and poll L2 until the balance increases
    """
    amount = sys.argv[1] if len(sys.argv) > 1 else "0.01"

    try:
        config = BridgeConfig.from_env()
        signer = LocalSigner(config.require_private_key())
        l1 = Web3Connector.connect(config.require_l1())
        l2 = Web3Connector.connect(config.l2_endpoint)
    except BridgeError as e:
        print(f"ERROR: {e}")
        return

    print(f"Depositing {amount} ETH for {signer.address}")

    try:
        result = bridge_eth(
            config, l1, l2, signer, parse_ether(amount),
            on_submitted=lambda record: print(f"L1 transaction: {config.tx_url(record.tx_hash)}"),
        )
    except BridgeError as e:
        print(f"Deposit failed: {e}")
        return

    if result.still_pending:
        print(f"Still pending after {result.poll.attempts} checks; try again later.")
    else:
        print(f"Received on L2 after {result.poll.attempts} checks.")
        print(f"L2 balance: {format_ether(result.poll.value)} ETH")


if __name__ == "__main__":
    main()
