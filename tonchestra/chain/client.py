"""
Chain client interface for deployment operations.

This module defines the protocol that any chain client must implement,
allowing the orchestrator to be decoupled from the actual RPC transport.

Implementations:
- ToncenterClient: toncenter v2 JSON-RPC over HTTP
- ThrottledChainClient: rate-limited wrapper around another client
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChainClient(Protocol):
    """
    Protocol for the chain operations a deployment needs.

    Addresses are passed as strings in any form the backend accepts
    (tonchestra passes the raw wc:hex form). All methods may raise
    ChainError (TransientError or PermanentError).
    """

    def get_balance(self, address: str) -> int:
        """
        Get the balance of an account.

        Args:
            address: Account address

        Returns:
            Balance in nanotons (0 for unknown accounts)
        """
        ...

    def is_contract_deployed(self, address: str) -> bool:
        """
        Check whether the account at address is initialized (active).

        Args:
            address: Account address

        Returns:
            True if the account state is active
        """
        ...

    def get_seqno(self, address: str) -> int:
        """
        Get the sequence number of a wallet.

        Args:
            address: Wallet address

        Returns:
            Current seqno (0 for a wallet that is not initialized yet)
        """
        ...

    def send_boc(self, boc: bytes) -> None:
        """
        Submit a serialized external message.

        Args:
            boc: Serialized message bag-of-cells
        """
        ...
