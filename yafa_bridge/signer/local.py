"""
Signer backed by a private key held in process memory.
"""
from typing import Dict, Any

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..exceptions import ConfigurationError


class LocalSigner:
    """
    Sign transactions with a raw private key.

    The key is never persisted or logged; ``repr`` only shows the address.
    """

    def __init__(self, private_key: str):
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid private key: {type(e).__name__}") from e

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        return self._account.sign_transaction(transaction_dict)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"
