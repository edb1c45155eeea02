"""
Error classes for tonchestra deployment runs.

Two families, split by what they do to a run:
- FatalError: Abort the whole run (missing secret, bad mnemonic, missing
  build output, insufficient deployer balance)
- Per-unit errors: Recorded against one unit in the report; the run moves on
  to the next unit (address derivation, submission, sequence reuse)

ChainError covers transport failures from the chain RPC client and is
further classified for retry decisions:
- TransientError: Safe to retry (rate limits, network issues, 5xx)
- PermanentError: Do not retry (bad request, rejected message, bad response)
"""


class TonchestraError(Exception):
    """Base exception for tonchestra."""
    pass


class FatalError(TonchestraError):
    """
    Fatal precondition failure - the run stops immediately.

    The CLI turns these into a diagnostic and a non-zero exit status.
    """
    pass


class ConfigError(FatalError):
    """Configuration is missing or invalid."""
    pass


class WalletKeyError(FatalError):
    """Deployer wallet keys could not be derived from the mnemonic."""
    pass


class ArtifactError(FatalError):
    """A build descriptor or compiled artifact is missing or malformed."""
    pass


class InsufficientFundsError(FatalError):
    """
    Deployer wallet balance is below the funding amount plus safety threshold.

    Raised before any submission. When raised mid-run the orchestrator
    attaches the partial report as `report`.
    """

    def __init__(self, balance: int, required: int, message: str | None = None):
        self.balance = balance
        self.required = required
        self.report = None
        super().__init__(
            message or f"Wallet balance {balance} is below required {required} (nanotons)"
        )


class ChainError(TonchestraError):
    """Chain RPC call failed."""
    pass


class TransientError(ChainError):
    """
    Transient error - safe to retry.

    Examples:
    - Rate limit exceeded (HTTP 429)
    - Network timeout
    - Service temporarily unavailable (5xx)
    - Connection reset
    """
    pass


class PermanentError(ChainError):
    """
    Permanent error - do not retry.

    Examples:
    - Malformed request or address
    - Message rejected by the endpoint
    - Response body is not valid JSON-RPC
    """
    pass


class UnitError(TonchestraError):
    """Failure scoped to a single deployable unit."""

    def __init__(self, unit_name: str, message: str):
        self.unit_name = unit_name
        super().__init__(f"Unit '{unit_name}': {message}")


class AddressDerivationError(UnitError):
    """Deployment address could not be derived for a unit."""
    pass


class SubmissionError(UnitError):
    """Funding transaction could not be built or submitted."""
    pass


class SequenceReuseError(UnitError):
    """Wallet sequence number has not advanced past the last one used."""

    def __init__(self, unit_name: str, seqno: int, last_seqno: int):
        self.seqno = seqno
        self.last_seqno = last_seqno
        super().__init__(
            unit_name,
            f"wallet seqno {seqno} was not advanced past last used seqno {last_seqno}",
        )
