"""
Chain access for the Yafa bridge toolkit.

Everything above this module talks to a chain through the ``ChainConnector``
protocol, so workflows can be driven by in-memory fakes in tests. The
``Web3Connector`` implementation is the only place web3 and transport
exceptions are seen; they are translated into the toolkit's own errors here.
"""
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Dict, Any, Optional, Union, Protocol, List

import requests
from web3 import Web3
from web3.contract.contract import ContractFunction
from web3.exceptions import Web3Exception, ContractLogicError, TimeExhausted
from web3.types import TxReceipt as Web3TxReceipt

from .exceptions import (
    ChainConnectionError,
    RpcError,
    InsufficientFundsError,
    TransactionError,
    TransactionRevertedError,
    ReceiptTimeoutError,
)
from .models import Endpoint, TxRecord
from .signer import Signer

logger = logging.getLogger(__name__)

# Transport failures surfaced by an HTTP JSON-RPC provider
_TRANSPORT_ERRORS = (requests.RequestException, Web3Exception)


@dataclass(frozen=True)
class ContractCall:
    """A bound contract function plus the value attached to the call."""
    function: ContractFunction
    value: int = 0
    gas: Optional[int] = None


@dataclass(frozen=True)
class ValueTransfer:
    """A plain ETH transfer with no calldata."""
    to: str
    value: int
    gas: int = 21000


@dataclass(frozen=True)
class TxHandle:
    """A broadcast transaction that has not been confirmed yet."""
    tx_hash: str
    sender: str
    nonce: int


Call = Union[ContractCall, ValueTransfer]


class ChainConnector(Protocol):
    """Capabilities the workflows need from a chain."""
    endpoint: Endpoint
    chain_id: int

    def get_balance(self, address: str) -> int:
        ...

    def get_code(self, address: str) -> bytes:
        ...

    def get_transaction_count(self, address: str) -> int:
        ...

    def contract(self, address: str, abi: List[Dict[str, Any]]) -> Any:
        ...

    def submit(self, signer: Signer, call: Call) -> TxHandle:
        ...

    def await_inclusion(
        self,
        handle: TxHandle,
        timeout: Optional[float] = None,
        poll_latency: Optional[float] = None,
    ) -> TxRecord:
        ...


def _is_insufficient_funds(error: Exception) -> bool:
    return "insufficient funds" in str(error).lower()


class Web3Connector:
    """
    ChainConnector over a web3 HTTP provider.

    Use ``Web3Connector.connect`` to build one; it probes the endpoint before
    returning so an unreachable node fails early.
    """

    DEFAULT_GAS = 300000
    DEFAULT_RECEIPT_TIMEOUT = 120.0
    DEFAULT_POLL_LATENCY = 1.0

    def __init__(
        self,
        w3: Web3,
        endpoint: Endpoint,
        chain_id: int,
        logger: Optional[logging.Logger] = None
    ):
        self.w3 = w3
        self.endpoint = endpoint
        self.chain_id = chain_id
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def connect(
        cls,
        endpoint: Endpoint,
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None
    ) -> "Web3Connector":
        """
        Open a connection to a chain endpoint.

        Args:
            endpoint: RPC URL and expected chain id
            timeout: HTTP request timeout in seconds
            logger: Optional logger instance

        Returns:
            Connected Web3Connector

        Raises:
            ChainConnectionError: If the URL is invalid, the node is unreachable,
                or the chain id probe returns a malformed response
        """
        log = logger or logging.getLogger(__name__)

        parsed = urllib.parse.urlparse(endpoint.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ChainConnectionError(f"RPC URL must be an http(s) URL (got: {endpoint.url!r})")

        w3 = Web3(Web3.HTTPProvider(endpoint.url, request_kwargs={"timeout": timeout}))

        try:
            chain_id = w3.eth.chain_id
        except (requests.RequestException, Web3Exception, ValueError, TypeError) as e:
            log.error(f"Chain id probe failed for {endpoint.url}: {e}")
            raise ChainConnectionError(f"Unable to connect to {endpoint.url}: {e}") from e

        if not isinstance(chain_id, int) or isinstance(chain_id, bool):
            raise ChainConnectionError(
                f"Malformed eth_chainId response from {endpoint.url}: {chain_id!r}"
            )

        if endpoint.chain_id is not None and chain_id != endpoint.chain_id:
            log.warning(
                f"{endpoint.name or endpoint.url} reports chain id {chain_id}, "
                f"expected {endpoint.chain_id}"
            )

        log.debug(f"Connected to {endpoint.url} (chain id {chain_id})")
        return cls(w3, endpoint, chain_id, logger=log)

    def _rpc(self, method: str, fn, *args):
        try:
            return fn(*args)
        except _TRANSPORT_ERRORS as e:
            self.logger.error(f"{method} failed on {self.endpoint.url}: {e}")
            raise RpcError(f"{method} failed: {e}", method=method) from e

    def get_balance(self, address: str) -> int:
        return int(self._rpc("eth_getBalance", self.w3.eth.get_balance, Web3.to_checksum_address(address)))

    def get_code(self, address: str) -> bytes:
        return bytes(self._rpc("eth_getCode", self.w3.eth.get_code, Web3.to_checksum_address(address)))

    def get_transaction_count(self, address: str) -> int:
        return int(self._rpc(
            "eth_getTransactionCount", self.w3.eth.get_transaction_count, Web3.to_checksum_address(address)
        ))

    def contract(self, address: str, abi: List[Dict[str, Any]]) -> Any:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def submit(self, signer: Signer, call: Call) -> TxHandle:
        """
        Sign and broadcast a call.

        Args:
            signer: Signing identity
            call: Contract call or plain value transfer

        Returns:
            Handle of the broadcast transaction

        Raises:
            InsufficientFundsError: If the node rejects the transaction for lack of funds
            TransactionRevertedError: If the call reverts during gas estimation
            TransactionError: If signing fails
            RpcError: On any other transport failure
        """
        sender = signer.address
        nonce = self.get_transaction_count(sender)
        gas_price = self._rpc("eth_gasPrice", lambda: self.w3.eth.gas_price)

        if isinstance(call, ValueTransfer):
            tx: Dict[str, Any] = {
                "from": sender,
                "to": Web3.to_checksum_address(call.to),
                "value": call.value,
                "gas": call.gas,
                "gasPrice": gas_price,
                "nonce": nonce,
                "chainId": self.chain_id,
            }
        else:
            tx = self._build_contract_tx(call, sender, nonce, gas_price)

        try:
            signed_tx = signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise TransactionError(f"Failed to sign transaction: {e}") from e

        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except ContractLogicError as e:
            raise TransactionRevertedError(
                f"Transaction rejected: {e}", reason=getattr(e, "message", None) or str(e)
            ) from e
        except _TRANSPORT_ERRORS as e:
            self.logger.error(f"Failed to send transaction: {e}")
            if _is_insufficient_funds(e):
                raise InsufficientFundsError(
                    f"Insufficient funds for value + gas on {self.endpoint.name or self.endpoint.url}"
                ) from e
            raise RpcError(f"Failed to send transaction: {e}", method="eth_sendRawTransaction") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        self.logger.info(f"Transaction sent: {tx_hash_hex}")
        return TxHandle(tx_hash=tx_hash_hex, sender=sender, nonce=nonce)

    def _build_contract_tx(
        self, call: ContractCall, sender: str, nonce: int, gas_price: int
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"from": sender, "value": call.value}

        gas = call.gas
        if gas is None:
            try:
                gas = int(call.function.estimate_gas(params) * 1.1)
                self.logger.debug(f"Estimated gas: {gas}")
            except ContractLogicError as e:
                reason = getattr(e, "message", None) or str(e)
                raise TransactionRevertedError(f"Call would revert: {reason}", reason=reason) from e
            except _TRANSPORT_ERRORS as e:
                if _is_insufficient_funds(e):
                    raise InsufficientFundsError(
                        f"Insufficient funds for value + gas on {self.endpoint.name or self.endpoint.url}"
                    ) from e
                gas = self.DEFAULT_GAS
                self.logger.warning(f"Gas estimation failed, using default: {gas}. Error: {e}")

        params.update({
            "nonce": nonce,
            "gas": gas,
            "gasPrice": gas_price,
            "chainId": self.chain_id,
        })
        return self._rpc("build_transaction", call.function.build_transaction, params)

    def await_inclusion(
        self,
        handle: TxHandle,
        timeout: Optional[float] = None,
        poll_latency: Optional[float] = None,
    ) -> TxRecord:
        """
        Block until a broadcast transaction is mined.

        Raises:
            ReceiptTimeoutError: If no receipt arrives within ``timeout``
            TransactionRevertedError: If the receipt has status 0
            RpcError: On transport failure
        """
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                handle.tx_hash,
                timeout=timeout or self.DEFAULT_RECEIPT_TIMEOUT,
                poll_latency=poll_latency or self.DEFAULT_POLL_LATENCY,
            )
        except TimeExhausted as e:
            raise ReceiptTimeoutError(
                f"Transaction {handle.tx_hash} not included after {timeout or self.DEFAULT_RECEIPT_TIMEOUT}s",
                tx_hash=handle.tx_hash,
            ) from e
        except _TRANSPORT_ERRORS as e:
            self.logger.error(f"Waiting for receipt failed: {e}")
            raise RpcError(f"Waiting for receipt failed: {e}", method="eth_getTransactionReceipt") from e

        record = self._convert_receipt(receipt)
        if record.status == 0:
            reason = self._revert_reason(handle, record.block_number)
            raise TransactionRevertedError(
                f"Transaction {record.tx_hash} reverted" + (f": {reason}" if reason else ""),
                tx_hash=record.tx_hash,
                reason=reason,
            )

        self.logger.info(f"Transaction {record.tx_hash} included in block {record.block_number}")
        return record

    def _revert_reason(self, handle: TxHandle, block_number: int) -> Optional[str]:
        """Replay a reverted transaction with eth_call to recover its reason string."""
        try:
            tx = self.w3.eth.get_transaction(handle.tx_hash)
            self.w3.eth.call(
                {
                    "from": tx["from"],
                    "to": tx["to"],
                    "data": tx["input"],
                    "value": tx["value"],
                    "gas": tx["gas"],
                },
                block_number - 1,
            )
        except ContractLogicError as e:
            return getattr(e, "message", None) or str(e)
        except _TRANSPORT_ERRORS as e:
            self.logger.debug(f"Could not replay {handle.tx_hash} for a revert reason: {e}")
        return None

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxRecord:
        """
        Convert a web3 receipt to a TxRecord.
        """
        receipt_dict = dict(web3_receipt)

        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = Web3.to_hex(value)

        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]
        return TxRecord.model_validate(receipt_dict)
