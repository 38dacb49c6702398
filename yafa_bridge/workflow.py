"""
Deposit-and-confirm workflows.

A deposit moves through ``PENDING -> SUBMITTED -> POLLING -> CONFIRMED``
or ``TIMED_OUT``; ``FAILED`` is entered when submission raises. Each step is
a separate ``DepositWorkflow`` method so the submit and poll halves can be
exercised on their own.
"""
import logging
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel
from web3 import Web3

from .artifact import ContractArtifact, load_artifact, build_deployment_payload
from .chain import ChainConnector, ValueTransfer
from .config import BridgeConfig
from .exceptions import BridgeError, ConfigurationError, WorkflowStateError
from .models import DepositRequest, TxRecord, PollResult, PollState
from .poller import (
    ConfirmationPoller,
    Observer,
    BalanceObserver,
    CodeObserver,
    predict_creation_address,
)
from .portal import DepositInitiator
from .signer import Signer, LocalSigner

logger = logging.getLogger(__name__)


class WorkflowPhase(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    POLLING = "polling"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class WorkflowResult(BaseModel):
    """Outcome of a deposit workflow"""
    phase: WorkflowPhase
    record: TxRecord
    poll: PollResult
    baseline: Any = None
    predicted_address: Optional[str] = None
    deposit_event_found: bool = False

    @property
    def still_pending(self) -> bool:
        return self.phase == WorkflowPhase.TIMED_OUT


class DepositWorkflow:
    """Two-phase submit-then-poll state machine for a single deposit."""

    def __init__(
        self,
        initiator: DepositInitiator,
        poller: ConfirmationPoller,
        observer: Observer,
        logger: Optional[logging.Logger] = None
    ):
        self.initiator = initiator
        self.poller = poller
        self.observer = observer
        self.logger = logger or logging.getLogger(__name__)

        self.phase = WorkflowPhase.PENDING
        self.baseline: Any = None
        self._baseline_taken = False
        self.record: Optional[TxRecord] = None
        self.poll_result: Optional[PollResult] = None

    def _expect(self, *phases: WorkflowPhase) -> None:
        if self.phase not in phases:
            expected = ", ".join(p.value for p in phases)
            raise WorkflowStateError(f"Invalid transition from '{self.phase.value}' (expected: {expected})")

    def record_baseline(self) -> Any:
        """Observe the destination chain before anything is submitted."""
        self._expect(WorkflowPhase.PENDING)
        self.baseline = self.poller.baseline(self.observer)
        self._baseline_taken = True
        return self.baseline

    def submit(self, request: DepositRequest) -> TxRecord:
        """PENDING -> SUBMITTED, or FAILED if the deposit cannot be included."""
        self._expect(WorkflowPhase.PENDING)
        if not self._baseline_taken:
            raise WorkflowStateError("Baseline must be recorded before submitting")

        try:
            self.record = self.initiator.submit(request)
        except BridgeError:
            self.phase = WorkflowPhase.FAILED
            raise

        self.phase = WorkflowPhase.SUBMITTED
        return self.record

    def start_polling(self) -> None:
        """SUBMITTED -> POLLING"""
        self._expect(WorkflowPhase.SUBMITTED)
        self.phase = WorkflowPhase.POLLING

    def poll(self, on_attempt: Optional[Callable[[PollState], None]] = None) -> PollResult:
        """POLLING -> CONFIRMED or TIMED_OUT"""
        self._expect(WorkflowPhase.POLLING)
        self.poll_result = self.poller.poll(self.observer, self.baseline, on_attempt=on_attempt)
        if self.poll_result.confirmed:
            self.phase = WorkflowPhase.CONFIRMED
        else:
            self.phase = WorkflowPhase.TIMED_OUT
        return self.poll_result

    def run(
        self,
        request: DepositRequest,
        on_submitted: Optional[Callable[[TxRecord], None]] = None,
        on_attempt: Optional[Callable[[PollState], None]] = None,
    ) -> WorkflowResult:
        """Drive the whole workflow from PENDING to a terminal phase."""
        if not self._baseline_taken:
            self.record_baseline()
        record = self.submit(request)
        if on_submitted is not None:
            on_submitted(record)
        self.start_polling()
        poll_result = self.poll(on_attempt=on_attempt)
        return WorkflowResult(
            phase=self.phase,
            record=record,
            poll=poll_result,
            baseline=self.baseline,
            deposit_event_found=self.initiator.deposit_event_found(record),
        )


def _make_poller(config: BridgeConfig, l2: ChainConnector) -> ConfirmationPoller:
    return ConfirmationPoller(l2, attempts=config.poll_attempts, interval=config.poll_interval)


def resolve_balance_address(config: BridgeConfig, address: Optional[str] = None) -> str:
    """
    Pick the address for a balance check: explicit, L2_BALANCE_ADDRESS, then the signer.

    Raises:
        ConfigurationError: If none of them is available, or the explicit address is malformed
    """
    if address:
        if not Web3.is_address(address):
            raise ConfigurationError(f"Not a valid address: {address}")
        return Web3.to_checksum_address(address)
    if config.balance_address:
        return config.balance_address
    if config.private_key is not None:
        return LocalSigner(config.require_private_key()).address
    raise ConfigurationError("No address to check: set L2_BALANCE_ADDRESS or PRIVATE_KEY")


def check_balance(config: BridgeConfig, l2: ChainConnector, address: Optional[str] = None) -> int:
    """Current L2 balance in wei of the configured (or given) address."""
    target = resolve_balance_address(config, address)
    balance = l2.get_balance(target)
    logger.debug(f"L2 balance of {target}: {balance} wei")
    return balance


def bridge_eth(
    config: BridgeConfig,
    l1: ChainConnector,
    l2: ChainConnector,
    signer: Signer,
    amount_wei: int,
    poller: Optional[ConfirmationPoller] = None,
    on_submitted: Optional[Callable[[TxRecord], None]] = None,
    on_attempt: Optional[Callable[[PollState], None]] = None,
) -> WorkflowResult:
    """
    Deposit ``amount_wei`` from L1 to the signer's own L2 address and wait for it.

    Raises:
        InsufficientBalanceError: Before any broadcast, if the amount exceeds the L1 balance
    """
    initiator = DepositInitiator(l1, signer, config)
    request = initiator.value_deposit_request(amount_wei)

    workflow = DepositWorkflow(initiator, poller or _make_poller(config, l2), BalanceObserver(signer.address))
    return workflow.run(request, on_submitted=on_submitted, on_attempt=on_attempt)


def deploy_via_portal(
    config: BridgeConfig,
    l1: ChainConnector,
    l2: ChainConnector,
    signer: Signer,
    artifact: Optional[ContractArtifact] = None,
    poller: Optional[ConfirmationPoller] = None,
    on_submitted: Optional[Callable[[TxRecord], None]] = None,
    on_attempt: Optional[Callable[[PollState], None]] = None,
) -> WorkflowResult:
    """
    Deploy the token contract on L2 through an L1 contract-creation deposit.

    The artifact is loaded (when not given) and encoded before any chain is
    contacted. The deployed address is a prediction from the sender and its
    L2 nonce; the result reports it as ``predicted_address``.

    Raises:
        ConfigurationError: If the artifact is missing or malformed
        InsufficientBalanceError: If the L1 balance is below the deployment reserve
    """
    if artifact is None:
        artifact = load_artifact(config.artifact_path)
    args = [config.initial_supply_wei] if artifact.constructor_inputs else []
    payload = build_deployment_payload(artifact, args)
    logger.debug(f"Deployment payload for {artifact.contract_name}: {len(payload)} bytes")

    initiator = DepositInitiator(l1, signer, config)
    request = initiator.creation_deposit_request(payload)

    l2_nonce = l2.get_transaction_count(signer.address)
    predicted = predict_creation_address(signer.address, l2_nonce)
    logger.info(f"Predicted L2 contract address: {predicted} (sender nonce {l2_nonce})")

    workflow = DepositWorkflow(initiator, poller or _make_poller(config, l2), CodeObserver(predicted))
    if workflow.record_baseline():
        logger.warning(
            f"Code already present at predicted address {predicted}; the deployment cannot be confirmed by polling"
        )
    result = workflow.run(request, on_submitted=on_submitted, on_attempt=on_attempt)
    return result.model_copy(update={"predicted_address": predicted})


def send_self_transfer(
    config: BridgeConfig,
    l2: ChainConnector,
    signer: Signer,
    amount_wei: Optional[int] = None,
) -> TxRecord:
    """Send a small value transfer to the signer's own address on L2 to check the sequencer."""
    value = config.self_transfer_wei if amount_wei is None else amount_wei
    handle = l2.submit(signer, ValueTransfer(to=signer.address, value=value))
    return l2.await_inclusion(handle, timeout=config.receipt_timeout)
