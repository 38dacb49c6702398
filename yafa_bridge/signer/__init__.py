"""
Signing identities used to authorize outgoing transactions.
"""
from typing import Dict, Any, Protocol

from .local import LocalSigner

__all__ = ["Signer", "LocalSigner"]


class Signer(Protocol):
    """Protocol for custom signers"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...
