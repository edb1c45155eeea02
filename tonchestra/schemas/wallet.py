"""
WalletState schema - deployer wallet snapshot.

The chain is the source of truth for both fields; a WalletState is read
right before each funding decision and thrown away afterwards.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class WalletState:
    """
    Attributes:
        address: Raw wallet address (wc:hex)
        seqno: Current wallet sequence number
        balance: Balance in nanotons
    """
    address: str
    seqno: int
    balance: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "seqno": self.seqno,
            "balance": self.balance,
        }
