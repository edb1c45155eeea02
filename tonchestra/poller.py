"""
ConfirmationPoller - confirm a deployment by polling chain state.

After a submission the poller waits for the wallet seqno to move past
the value the transaction used, with a fixed delay between attempts and
a bounded number of attempts. Whatever happens there, the target's state
is queried directly at the end and decides the outcome.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from tonchestra.chain import ChainClient
from tonchestra.errors import ChainError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResult:
    """
    Attributes:
        advanced: Wallet seqno moved past the submitted one within the window
        attempts: Number of seqno polls made
        deployed: Target reported active on the final check
        error: Error from the final state check, if it failed
    """
    advanced: bool
    attempts: int
    deployed: bool
    error: Optional[str] = None


class ConfirmationPoller:
    """
    Bounded seqno polling followed by a direct state check.

    Args:
        client: Chain client (throttled by the orchestrator)
        interval: Seconds to wait before each attempt
        max_attempts: Attempt cap
        sleep: Sleep function; tests pass a no-op
    """

    def __init__(
        self,
        client: ChainClient,
        interval: float = 2.0,
        max_attempts: int = 10,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._interval = interval
        self._max_attempts = max_attempts
        self._sleep = sleep

    def wait_for_seqno(self, wallet_address: str, seqno: int) -> tuple[bool, int]:
        """
        Poll the wallet until its seqno is greater than seqno.

        Returns:
            (advanced, attempts)
        """
        for attempt in range(1, self._max_attempts + 1):
            self._sleep(self._interval)
            try:
                current = self._client.get_seqno(wallet_address)
            except ChainError as e:
                logger.warning(f"Seqno poll {attempt}/{self._max_attempts} failed: {e}")
                continue
            if current > seqno:
                logger.debug(f"Wallet seqno advanced to {current} after {attempt} attempts")
                return True, attempt
        logger.warning(
            f"Wallet seqno did not advance past {seqno} after {self._max_attempts} attempts"
        )
        return False, self._max_attempts

    def confirm(self, wallet_address: str, target_address: str, seqno: int) -> PollResult:
        """Wait for the seqno to advance, then check the target directly."""
        advanced, attempts = self.wait_for_seqno(wallet_address, seqno)
        try:
            deployed = self._client.is_contract_deployed(target_address)
        except ChainError as e:
            logger.warning(f"Final state check for {target_address} failed: {e}")
            return PollResult(advanced=advanced, attempts=attempts, deployed=False, error=str(e))
        return PollResult(advanced=advanced, attempts=attempts, deployed=deployed)
