"""
DepositInitiator - builds and submits L1 -> L2 deposits through the OptimismPortal.
"""
import logging
from typing import Optional

from web3 import Web3

from .chain import ChainConnector, ContractCall
from .config import BridgeConfig
from .exceptions import InsufficientBalanceError
from .models import DepositRequest, TxRecord, ZERO_ADDRESS
from .signer import Signer
from .utils import format_ether, to_hex

# topic0 of TransactionDeposited(address indexed from, address indexed to, uint256 indexed version, bytes opaqueData)
TRANSACTION_DEPOSITED_TOPIC = Web3.to_hex(
    Web3.keccak(text="TransactionDeposited(address,address,uint256,bytes)")
)


class DepositInitiator:
    """
    Submit exactly one deposit to the portal contract on the source chain.

    Preconditions are checked against the live source balance before anything
    is broadcast; a failed broadcast or inclusion is not retried.
    """

    # ABI for the OptimismPortal deposit entry point
    PORTAL_ABI = [
        {
            "inputs": [
                {"internalType": "address", "name": "_to", "type": "address"},
                {"internalType": "uint256", "name": "_value", "type": "uint256"},
                {"internalType": "uint64", "name": "_gasLimit", "type": "uint64"},
                {"internalType": "bool", "name": "_isCreation", "type": "bool"},
                {"internalType": "bytes", "name": "_data", "type": "bytes"}
            ],
            "name": "depositTransaction",
            "outputs": [],
            "stateMutability": "payable",
            "type": "function"
        }
    ]

    def __init__(
        self,
        connector: ChainConnector,
        signer: Signer,
        config: BridgeConfig,
        logger: Optional[logging.Logger] = None
    ):
        self.connector = connector
        self.signer = signer
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.portal = connector.contract(config.portal_address, self.PORTAL_ABI)

    def value_deposit_request(self, amount_wei: int) -> DepositRequest:
        """
        Build a deposit that credits ``amount_wei`` to the signer's own L2 address.

        Raises:
            InsufficientBalanceError: If the amount is not positive or exceeds the L1 balance
        """
        balance = self.connector.get_balance(self.signer.address)
        if amount_wei <= 0:
            raise InsufficientBalanceError(
                "Deposit amount must be greater than zero",
                required_wei=amount_wei,
                available_wei=balance,
            )
        if balance == 0:
            raise InsufficientBalanceError(
                "No ETH on Sepolia! Get some from a faucet first.",
                required_wei=amount_wei,
                available_wei=balance,
            )
        if amount_wei > balance:
            raise InsufficientBalanceError(
                f"Insufficient balance! You only have {format_ether(balance)} ETH",
                required_wei=amount_wei,
                available_wei=balance,
            )

        return DepositRequest(
            to=self.signer.address,
            value=amount_wei,
            gas_limit=self.config.deposit_gas_limit,
            is_creation=False,
            data=b"",
            attached_value=amount_wei,
        )

    def creation_deposit_request(self, payload: bytes) -> DepositRequest:
        """
        Build a deposit that deploys ``payload`` (bytecode + constructor args) on L2.

        Raises:
            InsufficientBalanceError: If the L1 balance is below the deployment reserve
        """
        balance = self.connector.get_balance(self.signer.address)
        reserve = self.config.min_deploy_reserve_wei
        if balance < reserve:
            raise InsufficientBalanceError(
                f"Insufficient L1 balance. Need at least {format_ether(reserve)} ETH for deployment",
                required_wei=reserve,
                available_wei=balance,
            )

        return DepositRequest(
            to=ZERO_ADDRESS,
            value=0,
            gas_limit=self.config.creation_gas_limit,
            is_creation=True,
            data=payload,
            attached_value=0,
            l1_gas=self.config.creation_l1_gas,
        )

    def submit(self, request: DepositRequest) -> TxRecord:
        """
        Broadcast the deposit and wait for its inclusion on L1.

        Returns:
            Record of the included transaction
        """
        self.logger.debug(
            f"depositTransaction(to={request.to}, value={request.value}, gasLimit={request.gas_limit}, "
            f"isCreation={request.is_creation}, data={len(request.data)} bytes)"
        )
        call = ContractCall(
            function=self.portal.functions.depositTransaction(*request.as_args()),
            value=request.attached_value,
            gas=request.l1_gas,
        )
        handle = self.connector.submit(self.signer, call)
        record = self.connector.await_inclusion(handle, timeout=self.config.receipt_timeout)
        self.logger.info(
            f"Deposit {record.tx_hash} confirmed on L1 in block {record.block_number} "
            f"(gas used {record.gas_used})"
        )
        return record

    def deposit_event_found(self, record: TxRecord) -> bool:
        """Whether the receipt carries the portal's TransactionDeposited event."""
        portal_address = self.config.portal_address.lower()
        for log in record.logs:
            address = str(log.get("address", "")).lower()
            topics = log.get("topics") or []
            if address == portal_address and topics and to_hex(topics[0]).lower() == TRANSACTION_DEPOSITED_TOPIC:
                return True
        return False
