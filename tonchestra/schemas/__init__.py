"""
tonchestra.schemas - Data structures for a deployment run.

DeployableUnit -> DeploymentTarget -> DeploymentReport

Lifecycle:
1. DeployableUnit: Loaded from build output, immutable (code + init builders)
2. WalletState: Snapshot of the deployer wallet read from chain before each use
3. DeploymentTarget: Terminal outcome for one unit (address + status)
4. DeploymentReport: Ordered targets for the whole run, with per-status counts
"""

from .unit import (
    DeployDescriptor,
    DeployableUnit,
)
from .wallet import (
    WalletState,
)
from .target import (
    DeploymentStatus,
    DeploymentTarget,
)
from .report import (
    DeploymentReport,
)

__all__ = [
    # Unit
    "DeployDescriptor",
    "DeployableUnit",
    # Wallet
    "WalletState",
    # Target
    "DeploymentStatus",
    "DeploymentTarget",
    # Report
    "DeploymentReport",
]
