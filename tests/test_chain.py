"""
Tests for the Web3Connector chain seam.
"""
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
import requests
from web3.exceptions import Web3Exception, ContractLogicError, TimeExhausted

from yafa_bridge.chain import Web3Connector, ContractCall, ValueTransfer, TxHandle
from yafa_bridge.exceptions import (
    ChainConnectionError,
    RpcError,
    InsufficientFundsError,
    TransactionError,
    TransactionRevertedError,
    ReceiptTimeoutError,
)
from yafa_bridge.models import Endpoint

SENDER = "0x1234567890123456789012345678901234567890"
TX_HASH = bytes.fromhex("ab" * 32)
ENDPOINT = Endpoint(url="https://sepolia.example.com", chain_id=11155111, name="sepolia")


@pytest.fixture
def mock_w3():
    """Mock Web3 instance modelling a healthy node"""
    w3 = MagicMock()
    w3.eth.chain_id = 11155111
    w3.eth.gas_price = 1000000000  # 1 gwei
    w3.eth.get_transaction_count.return_value = 12
    w3.eth.get_balance.return_value = 5 * 10**17
    w3.eth.get_code.return_value = b""
    w3.eth.send_raw_transaction.return_value = TX_HASH
    w3.eth.wait_for_transaction_receipt.return_value = {
        "transactionHash": TX_HASH,
        "blockNumber": 12345,
        "blockHash": bytes.fromhex("cd" * 32),
        "status": 1,
        "gasUsed": 85000,
        "from": SENDER,
        "to": "0xa5ed72d0ebfeec112a0b3e9edc589a7916fc2a72",
        "logs": [],
    }
    return w3


@pytest.fixture
def connector(mock_w3):
    return Web3Connector(mock_w3, ENDPOINT, chain_id=11155111)


@pytest.fixture
def mock_signer():
    signer = MagicMock()
    signer.address = SENDER
    signer.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")
    return signer


@pytest.fixture
def deposit_fn():
    fn = MagicMock()
    fn.estimate_gas.return_value = 100000
    fn.build_transaction.side_effect = lambda params: {**params, "to": "0xportal", "data": "0x1234"}
    return fn


class TestConnect:

    @patch("yafa_bridge.chain.Web3", autospec=True)
    def test_connect_probes_chain_id(self, MockWeb3, mock_w3):
        MockWeb3.return_value = mock_w3

        connector = Web3Connector.connect(ENDPOINT, timeout=5)

        assert connector.chain_id == 11155111
        assert connector.endpoint == ENDPOINT
        MockWeb3.HTTPProvider.assert_called_once_with(
            "https://sepolia.example.com", request_kwargs={"timeout": 5}
        )

    @patch("yafa_bridge.chain.Web3", autospec=True)
    def test_connect_unreachable(self, MockWeb3):
        w3 = MagicMock()
        type(w3.eth).chain_id = PropertyMock(side_effect=requests.ConnectionError("refused"))
        MockWeb3.return_value = w3

        with pytest.raises(ChainConnectionError, match="Unable to connect"):
            Web3Connector.connect(ENDPOINT)

    @patch("yafa_bridge.chain.Web3", autospec=True)
    def test_connect_error_is_builtin_connection_error(self, MockWeb3):
        w3 = MagicMock()
        type(w3.eth).chain_id = PropertyMock(side_effect=Web3Exception("bad response"))
        MockWeb3.return_value = w3

        with pytest.raises(ConnectionError):
            Web3Connector.connect(ENDPOINT)

    @patch("yafa_bridge.chain.Web3", autospec=True)
    def test_connect_malformed_probe(self, MockWeb3):
        w3 = MagicMock()
        w3.eth.chain_id = "not-a-chain-id"
        MockWeb3.return_value = w3

        with pytest.raises(ChainConnectionError, match="Malformed"):
            Web3Connector.connect(ENDPOINT)

    @patch("yafa_bridge.chain.Web3", autospec=True)
    def test_connect_chain_id_mismatch_warns(self, MockWeb3, mock_w3, caplog):
        mock_w3.eth.chain_id = 1
        MockWeb3.return_value = mock_w3

        connector = Web3Connector.connect(ENDPOINT)

        assert connector.chain_id == 1
        assert "expected 11155111" in caplog.text

    @pytest.mark.parametrize("url", ["ftp://node.example.com", "localhost:8545", ""])
    def test_connect_rejects_non_http_urls(self, url):
        with pytest.raises(ChainConnectionError, match="http"):
            Web3Connector.connect(Endpoint(url=url))


class TestReads:

    def test_get_balance(self, connector, mock_w3):
        assert connector.get_balance(SENDER) == 5 * 10**17
        mock_w3.eth.get_balance.assert_called_once_with(SENDER)

    def test_get_balance_transport_failure(self, connector, mock_w3):
        mock_w3.eth.get_balance.side_effect = requests.ConnectionError("reset")

        with pytest.raises(RpcError) as exc_info:
            connector.get_balance(SENDER)

        assert exc_info.value.method == "eth_getBalance"

    def test_get_code(self, connector, mock_w3):
        mock_w3.eth.get_code.return_value = b"\x60\x80"

        assert connector.get_code(SENDER) == b"\x60\x80"

    def test_get_transaction_count(self, connector):
        assert connector.get_transaction_count(SENDER) == 12


class TestSubmit:

    def test_submit_contract_call(self, connector, mock_w3, mock_signer, deposit_fn):
        handle = connector.submit(mock_signer, ContractCall(function=deposit_fn, value=10**17))

        assert handle == TxHandle(tx_hash="0x" + "ab" * 32, sender=SENDER, nonce=12)
        tx = mock_signer.sign_transaction.call_args[0][0]
        assert tx["value"] == 10**17
        assert tx["gas"] == 110000  # estimate + 10%
        assert tx["nonce"] == 12
        assert tx["chainId"] == 11155111
        assert tx["gasPrice"] == 1000000000
        mock_w3.eth.send_raw_transaction.assert_called_once_with(b"signed")

    def test_submit_explicit_gas_skips_estimation(self, connector, mock_signer, deposit_fn):
        connector.submit(mock_signer, ContractCall(function=deposit_fn, value=0, gas=500000))

        deposit_fn.estimate_gas.assert_not_called()
        assert mock_signer.sign_transaction.call_args[0][0]["gas"] == 500000

    def test_gas_estimation_failure_uses_default(self, connector, mock_signer, deposit_fn, caplog):
        deposit_fn.estimate_gas.side_effect = Web3Exception("estimation unavailable")

        connector.submit(mock_signer, ContractCall(function=deposit_fn))

        assert mock_signer.sign_transaction.call_args[0][0]["gas"] == Web3Connector.DEFAULT_GAS
        assert "Gas estimation failed" in caplog.text

    def test_estimation_revert(self, connector, mock_w3, mock_signer, deposit_fn):
        deposit_fn.estimate_gas.side_effect = ContractLogicError("execution reverted: paused")

        with pytest.raises(TransactionRevertedError) as exc_info:
            connector.submit(mock_signer, ContractCall(function=deposit_fn))

        assert exc_info.value.reason == "execution reverted: paused"
        mock_w3.eth.send_raw_transaction.assert_not_called()

    def test_estimation_insufficient_funds(self, connector, mock_w3, mock_signer, deposit_fn):
        deposit_fn.estimate_gas.side_effect = Web3Exception("insufficient funds for gas * price + value")

        with pytest.raises(InsufficientFundsError):
            connector.submit(mock_signer, ContractCall(function=deposit_fn, value=10**18))

        mock_w3.eth.send_raw_transaction.assert_not_called()

    def test_broadcast_insufficient_funds(self, connector, mock_w3, mock_signer, deposit_fn):
        mock_w3.eth.send_raw_transaction.side_effect = Web3Exception(
            "insufficient funds for gas * price + value"
        )

        with pytest.raises(InsufficientFundsError):
            connector.submit(mock_signer, ContractCall(function=deposit_fn, gas=100000))

    def test_broadcast_transport_failure(self, connector, mock_w3, mock_signer, deposit_fn):
        mock_w3.eth.send_raw_transaction.side_effect = requests.ConnectionError("reset")

        with pytest.raises(RpcError) as exc_info:
            connector.submit(mock_signer, ContractCall(function=deposit_fn, gas=100000))

        assert exc_info.value.method == "eth_sendRawTransaction"

    def test_signing_failure(self, connector, mock_w3, mock_signer, deposit_fn):
        mock_signer.sign_transaction.side_effect = TypeError("from field must match key's address")

        with pytest.raises(TransactionError, match="Failed to sign"):
            connector.submit(mock_signer, ContractCall(function=deposit_fn, gas=100000))

        mock_w3.eth.send_raw_transaction.assert_not_called()

    def test_value_transfer(self, connector, mock_signer):
        to = "0x0987654321098765432109876543210987654321"

        connector.submit(mock_signer, ValueTransfer(to=to, value=10**15))

        tx = mock_signer.sign_transaction.call_args[0][0]
        assert tx["to"].lower() == to
        assert tx["value"] == 10**15
        assert tx["gas"] == 21000
        assert tx["chainId"] == 11155111


class TestAwaitInclusion:

    def test_receipt_converted(self, connector, mock_w3):
        record = connector.await_inclusion(TxHandle(tx_hash="0x" + "ab" * 32, sender=SENDER, nonce=1))

        assert record.tx_hash == "0x" + "ab" * 32
        assert record.block_number == 12345
        assert record.gas_used == 85000
        assert record.status == 1

    def test_receipt_passes_timeout(self, connector, mock_w3):
        connector.await_inclusion(TxHandle(tx_hash="0xab", sender=SENDER, nonce=1), timeout=7, poll_latency=0.5)

        mock_w3.eth.wait_for_transaction_receipt.assert_called_once_with("0xab", timeout=7, poll_latency=0.5)

    def test_receipt_timeout(self, connector, mock_w3):
        mock_w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not found")

        with pytest.raises(ReceiptTimeoutError) as exc_info:
            connector.await_inclusion(TxHandle(tx_hash="0xab", sender=SENDER, nonce=1), timeout=3)

        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.tx_hash == "0xab"

    def test_reverted_receipt_with_reason(self, connector, mock_w3):
        receipt = dict(mock_w3.eth.wait_for_transaction_receipt.return_value, status=0)
        mock_w3.eth.wait_for_transaction_receipt.return_value = receipt
        mock_w3.eth.get_transaction.return_value = {
            "from": SENDER, "to": "0xportal", "input": "0x", "value": 0, "gas": 100000
        }
        mock_w3.eth.call.side_effect = ContractLogicError("execution reverted: gas limit too low")

        with pytest.raises(TransactionRevertedError) as exc_info:
            connector.await_inclusion(TxHandle(tx_hash="0xab", sender=SENDER, nonce=1))

        assert exc_info.value.reason == "execution reverted: gas limit too low"
        assert mock_w3.eth.call.call_args[0][1] == 12344

    def test_reverted_receipt_without_reason(self, connector, mock_w3):
        receipt = dict(mock_w3.eth.wait_for_transaction_receipt.return_value, status=0)
        mock_w3.eth.wait_for_transaction_receipt.return_value = receipt
        mock_w3.eth.get_transaction.side_effect = Web3Exception("pruned")

        with pytest.raises(TransactionRevertedError) as exc_info:
            connector.await_inclusion(TxHandle(tx_hash="0xab", sender=SENDER, nonce=1))

        assert exc_info.value.reason is None
