"""
FundingTransaction - fund and deploy one unit from the deployer wallet.

The transfer carries the funding amount, bounce disabled, the unit's
StateInit (code + init data) and its optional init message as body.

Wallet balance and seqno are read from chain right before each
submission. The balance precondition is fatal for the whole run; every
other failure is scoped to the unit being submitted.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from tonsdk.boc import Cell

from tonchestra.address import ResolvedUnit
from tonchestra.chain import ChainClient
from tonchestra.errors import (
    ChainError,
    InsufficientFundsError,
    SequenceReuseError,
    SubmissionError,
)
from tonchestra.schemas import WalletState
from tonchestra.utils import format_ton
from tonchestra.wallet import Wallet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Submission:
    """
    A funding transaction that was handed to the network.

    Attributes:
        address: Raw target address
        seqno: Wallet seqno consumed by the transaction
        amount: Funding amount in nanotons
    """
    address: str
    seqno: int
    amount: int


class SequenceTracker:
    """
    Remembers the last seqno used in a run.

    A seqno is committed as soon as a send was attempted with it, even a
    failed one: the message may still have reached the network. A new
    submission must read a seqno strictly greater than the last commit.
    """

    def __init__(self):
        self._last: Optional[int] = None
        self._used: list[int] = []

    @property
    def last(self) -> Optional[int]:
        return self._last

    @property
    def used(self) -> list[int]:
        return list(self._used)

    def check(self, unit_name: str, seqno: int) -> None:
        """Raise SequenceReuseError if seqno is not past the last commit."""
        if self._last is not None and seqno <= self._last:
            raise SequenceReuseError(unit_name, seqno, self._last)

    def commit(self, seqno: int) -> None:
        self._last = seqno
        self._used.append(seqno)


class FundingTransaction:
    """
    Builds and submits funding + deploy transfers.

    Args:
        client: Chain client (throttled by the orchestrator)
        wallet: Deployer wallet that signs transfers
        funding_amount: Amount sent to each new contract (nanotons)
        min_balance: Safety threshold kept on top of the funding amount (nanotons)
        tracker: Seqno tracker shared for the run
    """

    def __init__(
        self,
        client: ChainClient,
        wallet: Wallet,
        funding_amount: int,
        min_balance: int,
        tracker: Optional[SequenceTracker] = None,
    ):
        self._client = client
        self._wallet = wallet
        self._funding_amount = funding_amount
        self._min_balance = min_balance
        self._tracker = tracker or SequenceTracker()

    @property
    def required_balance(self) -> int:
        return self._funding_amount + self._min_balance

    @property
    def tracker(self) -> SequenceTracker:
        return self._tracker

    @property
    def wallet_address(self) -> str:
        return self._wallet.address.to_string(False)

    def wallet_state(self) -> WalletState:
        """Read the deployer wallet's balance and seqno from chain."""
        address = self.wallet_address
        balance = self._client.get_balance(address)
        seqno = self._client.get_seqno(address)
        return WalletState(address=address, seqno=seqno, balance=balance)

    def check_balance(self) -> WalletState:
        """
        Read wallet state and enforce the balance precondition.

        Raises:
            InsufficientFundsError: If balance < funding amount + safety threshold
            ChainError: If the wallet state cannot be read
        """
        state = self.wallet_state()
        logger.info(f"Wallet balance: {format_ton(state.balance)}")
        if state.balance < self.required_balance:
            raise InsufficientFundsError(
                state.balance,
                self.required_balance,
                f"Wallet has {format_ton(state.balance)}, needs at least "
                f"{format_ton(self.required_balance)}, please fund it",
            )
        return state

    def submit(self, resolved: ResolvedUnit) -> Submission:
        """
        Send the funding transaction for a resolved unit, exactly once.

        Raises:
            InsufficientFundsError: Fatal balance precondition failed
            SequenceReuseError: Wallet seqno has not advanced since the last send
            SubmissionError: Wallet state read, message build or send failed
        """
        name = resolved.unit.name
        try:
            state = self.check_balance()
        except ChainError as e:
            raise SubmissionError(name, f"failed to read wallet state: {e}") from e

        self._tracker.check(name, state.seqno)

        try:
            body = resolved.unit.build_init_message()
        except Exception as e:
            raise SubmissionError(name, f"init_message() failed: {e}") from e
        if body is not None and not isinstance(body, Cell):
            raise SubmissionError(
                name, f"init_message() must return a Cell or None, got {type(body).__name__}"
            )

        try:
            boc = self._wallet.create_deploy_transfer(
                seqno=state.seqno,
                destination=resolved.address,
                amount=self._funding_amount,
                state_init=resolved.state_init,
                body=body,
            )
        except Exception as e:
            raise SubmissionError(name, f"failed to build transfer: {e}") from e

        try:
            self._client.send_boc(boc)
        except ChainError as e:
            raise SubmissionError(name, f"failed to send transfer: {e}") from e
        finally:
            self._tracker.commit(state.seqno)

        logger.info(f"Deploy transaction for {name} sent (seqno {state.seqno})")
        return Submission(
            address=resolved.raw_address,
            seqno=state.seqno,
            amount=self._funding_amount,
        )
