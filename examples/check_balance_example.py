#!/usr/bin/env python3
"""
Example of reading an L2 balance.
"""
from yafa_bridge import BridgeConfig, BridgeError, NetworkConfig, Web3Connector, check_balance
from yafa_bridge.utils import format_ether


def main():
    # Available networks
    print("Available networks:")
    for network_name in NetworkConfig.load_networks().keys():
        print(f"  - {network_name}")
    print()

    try:
        config = BridgeConfig.from_env()
        l2 = Web3Connector.connect(config.l2_endpoint)
        wei = check_balance(config, l2)
    except BridgeError as e:
        print(f"ERROR: {e}")
        return

    print(f"L2 Balance: {format_ether(wei)} ETH")


if __name__ == "__main__":
    main()
