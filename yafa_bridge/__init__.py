"""
Yafa bridge - move ETH and deploy contracts from Sepolia to the Yafa L2
through the OptimismPortal deposit contract.
"""
from .version import __version__
from .config import BridgeConfig, NetworkConfig
from .models import Endpoint, DepositRequest, TxRecord, PollState, PollResult, PollStatus
from .exceptions import (
    BridgeError,
    ConfigurationError,
    ChainConnectionError,
    RpcError,
    InsufficientBalanceError,
    InsufficientFundsError,
    TransactionError,
    TransactionRevertedError,
    ReceiptTimeoutError,
    WorkflowStateError,
)
from .signer import Signer, LocalSigner
from .chain import ChainConnector, Web3Connector, ContractCall, ValueTransfer, TxHandle
from .artifact import ContractArtifact, load_artifact, build_deployment_payload
from .portal import DepositInitiator
from .poller import ConfirmationPoller, BalanceObserver, CodeObserver, predict_creation_address
from .workflow import (
    DepositWorkflow,
    WorkflowPhase,
    WorkflowResult,
    check_balance,
    bridge_eth,
    deploy_via_portal,
    send_self_transfer,
)

__all__ = [
    "__version__",
    "BridgeConfig",
    "NetworkConfig",
    "Endpoint",
    "DepositRequest",
    "TxRecord",
    "PollState",
    "PollResult",
    "PollStatus",
    "BridgeError",
    "ConfigurationError",
    "ChainConnectionError",
    "RpcError",
    "InsufficientBalanceError",
    "InsufficientFundsError",
    "TransactionError",
    "TransactionRevertedError",
    "ReceiptTimeoutError",
    "WorkflowStateError",
    "Signer",
    "LocalSigner",
    "ChainConnector",
    "Web3Connector",
    "ContractCall",
    "ValueTransfer",
    "TxHandle",
    "ContractArtifact",
    "load_artifact",
    "build_deployment_payload",
    "DepositInitiator",
    "ConfirmationPoller",
    "BalanceObserver",
    "CodeObserver",
    "predict_creation_address",
    "DepositWorkflow",
    "WorkflowPhase",
    "WorkflowResult",
    "check_balance",
    "bridge_eth",
    "deploy_via_portal",
    "send_self_transfer",
]
