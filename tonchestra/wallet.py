"""
Deployer wallet - keys and transfer signing.

Wraps a tonsdk wallet v3r2 contract derived from the deployer mnemonic.
The wallet never talks to the network: it only builds signed external
messages that the orchestrator submits through the chain client.
"""

import logging
from typing import Any, Optional, Protocol

from tonsdk.boc import Cell
from tonsdk.contract.wallet import Wallets, WalletVersionEnum
from tonsdk.utils import Address

from tonchestra.errors import WalletKeyError

logger = logging.getLogger(__name__)

# Pay transfer fees separately (1) + ignore errors (2)
DEPLOY_SEND_MODE = 3


class Wallet(Protocol):
    """What FundingTransaction needs from a deployer wallet."""

    @property
    def address(self) -> Address:
        ...

    def create_deploy_transfer(
        self,
        seqno: int,
        destination: Address,
        amount: int,
        state_init: Cell,
        body: Optional[Cell] = None,
    ) -> bytes:
        ...


class DeployerWallet:
    """Deployer wallet backed by a tonsdk wallet contract."""

    def __init__(self, contract: Any):
        self._contract = contract

    @classmethod
    def from_mnemonic(
        cls,
        mnemonic: str,
        workchain: int,
        version: WalletVersionEnum = WalletVersionEnum.v3r2,
    ) -> "DeployerWallet":
        """
        Derive the wallet from a space separated mnemonic phrase.

        Raises:
            WalletKeyError: If the mnemonic is invalid or key derivation fails
        """
        words = mnemonic.split()
        try:
            _mnemonics, _public_key, _private_key, contract = Wallets.from_mnemonics(
                words, version, workchain
            )
        except Exception as e:
            raise WalletKeyError(f"Failed to derive wallet key from mnemonic: {e}") from e
        wallet = cls(contract)
        logger.info(f"Wallet key generated, wallet address {wallet.address.to_string(False)}")
        return wallet

    @property
    def address(self) -> Address:
        return self._contract.address

    def create_deploy_transfer(
        self,
        seqno: int,
        destination: Address,
        amount: int,
        state_init: Cell,
        body: Optional[Cell] = None,
    ) -> bytes:
        """
        Build a signed external message carrying a deploy transfer.

        The internal message goes to destination with bounce disabled,
        carries state_init and the optional body.

        Returns:
            Serialized external message BOC
        """
        # Non-bounceable destination form disables bounce on the internal message
        to_addr = destination.to_string(True, True, False)
        query = self._contract.create_transfer_message(
            to_addr,
            amount,
            seqno,
            payload=body,
            send_mode=DEPLOY_SEND_MODE,
            state_init=state_init,
        )
        return bytes(query["message"].to_boc(False))
