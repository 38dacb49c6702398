"""
Exceptions for the Yafa bridge toolkit.
"""
from typing import Optional


class BridgeError(Exception):
    """Base exception for all bridge workflow errors."""
    pass


class ConfigurationError(BridgeError):
    """Raised when environment settings or the contract artifact are missing or invalid."""
    pass


class ChainConnectionError(BridgeError, ConnectionError):
    """Raised when a chain endpoint is unreachable or fails the initial probe."""
    pass


class RpcError(BridgeError):
    """Raised on transport-level failures of an individual RPC call."""

    def __init__(self, message: str, method: Optional[str] = None):
        self.method = method
        super().__init__(message)


class InsufficientBalanceError(BridgeError):
    """Raised before submission when the source balance cannot cover the request."""

    def __init__(self, message: str, required_wei: int = 0, available_wei: int = 0):
        self.required_wei = required_wei
        self.available_wei = available_wei
        super().__init__(message)


class InsufficientFundsError(BridgeError):
    """Raised when the node rejects a transaction because value + fee exceeds the balance."""
    pass


class TransactionError(BridgeError):
    """Raised when signing or broadcasting a transaction fails."""
    pass


class TransactionRevertedError(TransactionError):
    """Raised when a transaction is rejected by the contract it calls."""

    def __init__(self, message: str, tx_hash: Optional[str] = None, reason: Optional[str] = None):
        self.tx_hash = tx_hash
        self.reason = reason
        super().__init__(message)


class ReceiptTimeoutError(BridgeError, TimeoutError):
    """Raised when a submitted transaction is not included within the receipt timeout."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class WorkflowStateError(BridgeError, RuntimeError):
    """Raised on an illegal deposit workflow state transition."""
    pass
