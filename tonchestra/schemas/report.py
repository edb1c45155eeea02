"""
DeploymentReport schema - outcome of a whole run.

Targets are kept in processing order, which is discovery order.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .target import DeploymentStatus, DeploymentTarget


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class DeploymentReport:
    """
    Per-unit outcomes of a deployment run.

    Attributes:
        targets: Terminal targets in processing order
        started_at: When the run started
        completed_at: When the run finished (None while running or if aborted)
    """
    targets: list[DeploymentTarget] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    def add(self, target: DeploymentTarget) -> None:
        self.targets.append(target)

    def complete(self) -> None:
        self.completed_at = _utcnow()

    def by_status(self, status: DeploymentStatus) -> list[DeploymentTarget]:
        return [t for t in self.targets if t.status == status]

    def counts(self) -> dict[str, int]:
        """Count targets per status; every status is present."""
        counts = {status.value: 0 for status in DeploymentStatus}
        for target in self.targets:
            counts[target.status.value] += 1
        return counts

    def get(self, name: str) -> Optional[DeploymentTarget]:
        for target in self.targets:
            if target.unit.name == name:
                return target
        return None

    @property
    def submitted_seqnos(self) -> list[int]:
        """Seqnos consumed by funding transactions, in submission order."""
        return [t.seqno for t in self.targets if t.seqno is not None]

    @property
    def has_unconfirmed(self) -> bool:
        return any(
            t.status in (DeploymentStatus.UNCONFIRMED, DeploymentStatus.ADDRESS_ERROR)
            for t in self.targets
        )

    @property
    def duration_ms(self) -> Optional[int]:
        if self.completed_at is None:
            return None
        delta = self.completed_at - self.started_at
        return int(delta.total_seconds() * 1000)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result: dict[str, Any] = {
            "started_at": self.started_at.isoformat(),
            "counts": self.counts(),
            "targets": [t.to_dict() for t in self.targets],
        }
        if self.completed_at is not None:
            result["completed_at"] = self.completed_at.isoformat()
            result["duration_ms"] = self.duration_ms
        return result
