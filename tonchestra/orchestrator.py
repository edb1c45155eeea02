"""
Orchestrator - sequences a deployment run.

The Orchestrator implements:
- Discovery of deployable units (ArtifactSet)
- Startup balance precondition
- Per-unit pipeline: resolve address -> deployment gate -> funding -> confirmation
- A single rate limiter shared by every chain call of the run
- Aggregation of terminal DeploymentTargets into a DeploymentReport

Execution flow:
1. Discover all units (fatal on broken build output, before any RPC)
2. Check the deployer wallet balance (fatal when insufficient)
3. For each unit, in discovery order and strictly one at a time:
   a. Derive the address (address_error on failure, continue)
   b. Query deployment state (skipped if already deployed)
   c. Submit the funding transaction (fire once)
   d. Poll for confirmation (confirmed / unconfirmed)
4. Return the report

Failure policy:
- FatalError family propagates and stops the run
- Everything else is recorded against the unit and the run moves on
"""

import logging
import time
from typing import Callable, Optional

from tonchestra.address import AddressResolver, ResolvedUnit, format_address
from tonchestra.artifacts import ArtifactLoader, ArtifactSet, FileArtifactLoader
from tonchestra.chain import ChainClient, RateLimiter, ThrottledChainClient, ToncenterClient
from tonchestra.config import TonchestraConfig
from tonchestra.errors import (
    AddressDerivationError,
    ChainError,
    FatalError,
    InsufficientFundsError,
    SequenceReuseError,
    SubmissionError,
)
from tonchestra.funding import FundingTransaction
from tonchestra.gate import DeploymentGate
from tonchestra.poller import ConfirmationPoller
from tonchestra.schemas import (
    DeployableUnit,
    DeploymentReport,
    DeploymentStatus,
    DeploymentTarget,
    WalletState,
)
from tonchestra.utils import format_ton
from tonchestra.wallet import DeployerWallet, Wallet

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Runs the deployment of every discovered unit.

    Usage:
        orchestrator = Orchestrator(config, client=ToncenterClient(...), wallet=wallet)
        report = orchestrator.run()

    All collaborators see the throttled client; pass sleep/clock to run
    without real delays.
    """

    def __init__(
        self,
        config: TonchestraConfig,
        client: ChainClient,
        wallet: Wallet,
        loader: Optional[ArtifactLoader] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config
        self._wallet = wallet
        self._limiter = RateLimiter(config.requests_per_second, clock=clock, sleep=sleep)
        self._client = ThrottledChainClient(client, self._limiter)

        if loader is None:
            loader = FileArtifactLoader(config.build_path, config.descriptor_pattern)
        self._artifacts = ArtifactSet(loader)

        self._resolver = AddressResolver(config.workchain)
        self._gate = DeploymentGate(self._client)
        self._funding = FundingTransaction(
            self._client,
            wallet,
            funding_amount=config.funding_amount,
            min_balance=config.min_wallet_balance,
        )
        self._poller = ConfirmationPoller(
            self._client,
            interval=config.poll_interval,
            max_attempts=config.poll_attempts,
            sleep=sleep,
        )

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def funding(self) -> FundingTransaction:
        return self._funding

    def discover(self) -> list[DeployableUnit]:
        """Load every unit. ArtifactError propagates."""
        units = self._artifacts.units
        logger.info(f"Discovered {len(units)} deployable units in {self._config.build_dir}")
        if units:
            logger.debug(f"Deployment order: {', '.join(self._artifacts.names())}")
        return units

    def preflight(self) -> WalletState:
        """
        Check the deployer wallet before any unit is processed.

        Raises:
            InsufficientFundsError: Balance below funding amount + safety threshold
            FatalError: Wallet state could not be read
        """
        logger.info(f"Wallet address: {self._format(self._wallet.address)}")
        try:
            return self._funding.check_balance()
        except ChainError as e:
            raise FatalError(f"Failed to fetch wallet state: {e}") from e

    def run(self, units: Optional[list[DeployableUnit]] = None) -> DeploymentReport:
        """
        Deploy all units and return the report.

        Raises:
            FatalError: On startup failures or insufficient balance mid-run;
                an InsufficientFundsError raised mid-run carries the partial
                report as .report
        """
        if units is None:
            units = self.discover()

        report = DeploymentReport()
        logger.info(
            f"Starting deployment: {len(units)} units, workchain {self._config.workchain}, "
            f"funding {format_ton(self._config.funding_amount)} each"
        )
        self.preflight()

        for unit in units:
            logger.info(f"Processing {unit.name}")
            try:
                target = self.process_unit(unit)
            except InsufficientFundsError as e:
                logger.error(f"Aborting deployment at {unit.name}: {e}")
                e.report = report
                raise
            report.add(target)

        report.complete()
        counts = report.counts()
        logger.info(
            "Deployment finished: "
            + ", ".join(f"{status}={count}" for status, count in counts.items())
        )
        return report

    def process_unit(self, unit: DeployableUnit) -> DeploymentTarget:
        """
        Run the pipeline for a single unit and return its terminal target.

        Raises:
            InsufficientFundsError: Fatal balance precondition failed
        """
        try:
            resolved = self._resolver.resolve(unit)
        except AddressDerivationError as e:
            logger.error(str(e))
            return DeploymentTarget(unit=unit, status=DeploymentStatus.ADDRESS_ERROR, error=str(e))

        address = self._format(resolved.address)

        try:
            if self._gate.is_deployed(resolved.raw_address):
                return DeploymentTarget(unit=unit, status=DeploymentStatus.SKIPPED, address=address)
        except ChainError as e:
            logger.error(f"Deployment check for {unit.name} failed: {e}")
            return self._unconfirmed(unit, address, f"deployment check failed: {e}")

        try:
            submission = self._funding.submit(resolved)
        except (SubmissionError, SequenceReuseError) as e:
            logger.error(str(e))
            return self._unconfirmed(unit, address, str(e))

        if not self._config.wait_for_confirmation:
            return DeploymentTarget(
                unit=unit,
                status=DeploymentStatus.SUBMITTED,
                address=address,
                seqno=submission.seqno,
            )

        return self._confirm(resolved, address, submission.seqno)

    def _confirm(self, resolved: ResolvedUnit, address: str, seqno: int) -> DeploymentTarget:
        unit = resolved.unit
        result = self._poller.confirm(self._funding.wallet_address, resolved.raw_address, seqno)

        if not result.deployed:
            logger.error(f"FAILURE! Contract address still looks uninitialized: {address}")
            error = result.error or (
                "target not initialized after "
                f"{result.attempts} attempts (seqno advanced: {result.advanced})"
            )
            return self._unconfirmed(unit, address, error, seqno=seqno)

        logger.info(f"SUCCESS! Contract deployed to address: {address}")
        balance = None
        try:
            balance = self._client.get_balance(resolved.raw_address)
            logger.info(f"New contract balance: {format_ton(balance)}")
        except ChainError as e:
            logger.warning(f"Could not read balance of {address}: {e}")

        return DeploymentTarget(
            unit=unit,
            status=DeploymentStatus.CONFIRMED,
            address=address,
            seqno=seqno,
            balance=balance,
        )

    def _unconfirmed(
        self,
        unit: DeployableUnit,
        address: str,
        error: str,
        seqno: Optional[int] = None,
    ) -> DeploymentTarget:
        return DeploymentTarget(
            unit=unit,
            status=DeploymentStatus.UNCONFIRMED,
            address=address,
            seqno=seqno,
            error=error,
        )

    def _format(self, address) -> str:
        return format_address(address, self._config.testnet)


def resolve_addresses(
    config: TonchestraConfig,
    loader: Optional[ArtifactLoader] = None,
) -> list[tuple[DeployableUnit, Optional[str], Optional[str]]]:
    """
    Derive the address of every unit without touching the network.

    Returns:
        (unit, address, error) per unit in discovery order; address is None
        and error set when derivation failed

    Raises:
        ArtifactError: Build output broken
    """
    if loader is None:
        loader = FileArtifactLoader(config.build_path, config.descriptor_pattern)
    resolver = AddressResolver(config.workchain)

    results: list[tuple[DeployableUnit, Optional[str], Optional[str]]] = []
    for unit in ArtifactSet(loader):
        try:
            resolved = resolver.resolve(unit)
        except AddressDerivationError as e:
            results.append((unit, None, str(e)))
            continue
        results.append((unit, format_address(resolved.address, config.testnet), None))
    return results


def run_deployment(
    config: TonchestraConfig,
    client: Optional[ChainClient] = None,
    wallet: Optional[Wallet] = None,
    loader: Optional[ArtifactLoader] = None,
) -> DeploymentReport:
    """
    Run a deployment from configuration.

    Builds the toncenter client and derives the deployer wallet from the
    mnemonic unless they are given.

    Raises:
        ConfigError: Mnemonic missing
        WalletKeyError: Mnemonic invalid
        ArtifactError: Build output broken
        InsufficientFundsError: Deployer wallet underfunded
    """
    if wallet is None:
        wallet = DeployerWallet.from_mnemonic(config.get_mnemonic(), config.workchain)
    if client is None:
        client = ToncenterClient(config.endpoint, api_key=config.api_key)
        logger.info(f"Working with '{'testnet' if config.testnet else 'mainnet'}' at {config.endpoint}")

    orchestrator = Orchestrator(config, client=client, wallet=wallet, loader=loader)
    return orchestrator.run()
