"""
DeploymentTarget schema - terminal outcome of one unit.

A target is created once the unit's pipeline stage ends and is never
mutated afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .unit import DeployableUnit


class DeploymentStatus(str, Enum):
    """Terminal status of a unit."""
    SKIPPED = "skipped"              # already deployed, nothing sent
    SUBMITTED = "submitted"          # sent, confirmation not awaited
    CONFIRMED = "confirmed"          # sent and target reports active
    UNCONFIRMED = "unconfirmed"      # sent (or failed to send) and not seen active
    ADDRESS_ERROR = "address_error"  # address could not be derived


@dataclass(frozen=True)
class DeploymentTarget:
    """
    The outcome of processing a single deployable unit.

    Attributes:
        unit: The unit that was processed
        status: Terminal status
        address: Derived address in user-friendly form (None on address_error)
        seqno: Wallet seqno consumed by the funding transaction, if one was sent
        error: Error message for address_error/unconfirmed outcomes
        balance: Contract balance in nanotons observed after confirmation
    """
    unit: DeployableUnit
    status: DeploymentStatus
    address: Optional[str] = None
    seqno: Optional[int] = None
    error: Optional[str] = None
    balance: Optional[int] = None

    def __post_init__(self):
        if self.status != DeploymentStatus.ADDRESS_ERROR and self.address is None:
            raise ValueError(f"{self.status.value} targets must have an address")
        if self.status in (DeploymentStatus.SUBMITTED, DeploymentStatus.CONFIRMED):
            if self.seqno is None:
                raise ValueError(f"{self.status.value} targets must have a seqno")

    @property
    def name(self) -> str:
        return self.unit.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result: dict[str, Any] = {
            "name": self.unit.name,
            "status": self.status.value,
        }
        if self.address is not None:
            result["address"] = self.address
        if self.seqno is not None:
            result["seqno"] = self.seqno
        if self.error is not None:
            result["error"] = self.error
        if self.balance is not None:
            result["balance"] = self.balance
        return result
