"""
Data models for the Yafa bridge toolkit.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
UINT64_MAX = 2**64 - 1


class Endpoint(BaseModel):
    """A chain's RPC URL and the chain id it is expected to report"""
    model_config = ConfigDict(frozen=True)

    url: str
    chain_id: Optional[int] = None
    name: Optional[str] = None


class DepositRequest(BaseModel):
    """Arguments of one OptimismPortal.depositTransaction call"""
    model_config = ConfigDict(frozen=True)

    to: str
    value: int = Field(..., ge=0)
    gas_limit: int = Field(..., gt=0, le=UINT64_MAX)
    is_creation: bool = False
    data: bytes = b""
    # ETH attached to the L1 call itself
    attached_value: int = Field(0, ge=0)
    # Explicit L1 gas for the portal call; estimated when None
    l1_gas: Optional[int] = None

    def as_args(self) -> Tuple[str, int, int, bool, bytes]:
        return (self.to, self.value, self.gas_limit, self.is_creation, self.data)


class TxRecord(BaseModel):
    """Transaction receipt summary"""
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    gas_used: int = Field(..., alias="gasUsed")
    status: int = 1
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)


class PollStatus(str, Enum):
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"


@dataclass
class PollState:
    """Mutable bookkeeping of one polling loop."""
    budget: int
    interval: float
    baseline: Any
    attempt: int = 0
    last_value: Any = None

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.budget


class PollResult(BaseModel):
    """Outcome of a polling loop; a timeout is a normal result, not an error"""
    status: PollStatus
    attempts: int
    baseline: Any = None
    value: Any = None

    @property
    def confirmed(self) -> bool:
        return self.status == PollStatus.CONFIRMED
