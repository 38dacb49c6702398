#!/usr/bin/env python3
"""
Example of deploying a compiled contract to the Yafa L2 through an L1 deposit.
"""
import os

from yafa_bridge import (
    BridgeConfig,
    BridgeError,
    ConfirmationPoller,
    LocalSigner,
    Web3Connector,
    deploy_via_portal,
    load_artifact,
)


def main():
    """
    Demonstrate a contract-creation deposit.

    This example shows how to:
    1. Load a Hardhat artifact (validated before touching any chain)
    2. Use a custom poller with a longer budget
    3. Report the predicted L2 contract address
    """
    artifact_path = os.environ.get(
        "YAFA_ARTIFACT_PATH", "artifacts/contracts/YafaToken.sol/YafaToken.json"
    )

    try:
        config = BridgeConfig.from_env()
        signer = LocalSigner(config.require_private_key())
        artifact = load_artifact(artifact_path)
        l1 = Web3Connector.connect(config.require_l1())
        l2 = Web3Connector.connect(config.l2_endpoint)
    except BridgeError as e:
        print(f"ERROR: {e}")
        return

    print(f"Deploying {artifact.contract_name} ({len(artifact.bytecode)} bytes)")

    # Wait up to 10 minutes for the code to show up
    poller = ConfirmationPoller(l2, attempts=60, interval=10.0)

    try:
        result = deploy_via_portal(config, l1, l2, signer, artifact=artifact, poller=poller)
    except BridgeError as e:
        print(f"Deployment failed: {e}")
        return

    print(f"L1 transaction: {result.record.tx_hash}")
    print(f"Predicted L2 address: {result.predicted_address}")
    print("Code is live" if not result.still_pending else "Deposit still pending")


if __name__ == "__main__":
    main()
