"""
ConfirmationPoller - watch the destination chain for the effect of a deposit.
"""
import time
import logging
from typing import Any, Callable, Optional, Protocol

import rlp
from web3 import Web3

from .chain import ChainConnector
from .exceptions import RpcError
from .models import PollState, PollResult, PollStatus

DEFAULT_ATTEMPTS = 30
DEFAULT_INTERVAL = 5.0


class Observer(Protocol):
    """Reads one value from the destination chain and judges it against a baseline."""

    def observe(self, connector: ChainConnector) -> Any:
        ...

    def satisfied(self, baseline: Any, value: Any) -> bool:
        ...


class BalanceObserver:
    """Success once the balance of ``address`` is strictly above the baseline."""

    def __init__(self, address: str):
        self.address = address

    def observe(self, connector: ChainConnector) -> int:
        return connector.get_balance(self.address)

    def satisfied(self, baseline: int, value: int) -> bool:
        return value > baseline


class CodeObserver:
    """Success once code appears at ``address``, which must have had none at the baseline."""

    def __init__(self, address: str):
        self.address = address

    def observe(self, connector: ChainConnector) -> bytes:
        return connector.get_code(self.address)

    def satisfied(self, baseline: bytes, value: bytes) -> bool:
        return not baseline and len(value) > 0


def predict_creation_address(sender: str, nonce: int) -> str:
    """
    Address a contract created by ``sender`` at ``nonce`` is expected to get.

    Derived from the sender and its nonce only; aliasing does not apply since
    deposits here come from an externally owned account.
    """
    sender_bytes = Web3.to_bytes(hexstr=sender)
    digest = Web3.keccak(rlp.encode([sender_bytes, nonce]))
    return Web3.to_checksum_address(digest[-20:])


class ConfirmationPoller:
    """
    Poll the destination chain a bounded number of times.

    Running out of attempts is reported as ``PollStatus.TIMED_OUT``: the
    destination chain may just be slow, so it is never raised as an error.
    """

    def __init__(
        self,
        connector: ChainConnector,
        attempts: int = DEFAULT_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        if interval < 0:
            raise ValueError("interval must not be negative")
        self.connector = connector
        self.attempts = attempts
        self.interval = interval
        self.sleep = sleep or time.sleep
        self.logger = logger or logging.getLogger(__name__)

    def baseline(self, observer: Observer) -> Any:
        """Observe the state to compare against; take this before submitting."""
        return observer.observe(self.connector)

    def poll(
        self,
        observer: Observer,
        baseline: Any,
        on_attempt: Optional[Callable[[PollState], None]] = None
    ) -> PollResult:
        """
        Re-observe until the observer is satisfied or the attempt budget runs out.

        Args:
            observer: What to read and how to judge it
            baseline: Value observed before the deposit was submitted
            on_attempt: Called after every unsuccessful attempt (progress output)

        Returns:
            CONFIRMED on the first satisfied observation, TIMED_OUT otherwise

        Raises:
            RpcError: If an observation fails; the read is not retried
        """
        state = PollState(budget=self.attempts, interval=self.interval, baseline=baseline)

        while not state.exhausted:
            self.sleep(state.interval)
            state.attempt += 1

            try:
                value = observer.observe(self.connector)
            except RpcError as e:
                self.logger.error(f"Poll attempt {state.attempt}/{state.budget} failed: {e}")
                raise

            state.last_value = value
            if observer.satisfied(baseline, value):
                self.logger.info(f"Destination change observed after {state.attempt} attempt(s)")
                return PollResult(
                    status=PollStatus.CONFIRMED,
                    attempts=state.attempt,
                    baseline=baseline,
                    value=value,
                )

            if on_attempt is not None:
                on_attempt(state)

        self.logger.warning(f"No destination change after {state.attempt} attempt(s); still pending")
        return PollResult(
            status=PollStatus.TIMED_OUT,
            attempts=state.attempt,
            baseline=baseline,
            value=state.last_value,
        )
