"""
CLI interface for tonchestra deployment orchestrator.

Provides commands to initialize configuration, inspect derived addresses,
and deploy every unit found in the build directory.

Units are <name>.deploy.py descriptors in the build directory, each paired
with a <name>.compiled.json code artifact.
"""

from pathlib import Path

import click

from tonchestra import __version__
from tonchestra.errors import FatalError, InsufficientFundsError
from tonchestra.schemas import DeploymentReport, DeploymentStatus


# Exit status when --strict and some unit did not confirm
EXIT_UNCONFIRMED = 2

STATUS_LABELS = {
    DeploymentStatus.SKIPPED: "SKIPPED",
    DeploymentStatus.SUBMITTED: "SUBMITTED",
    DeploymentStatus.CONFIRMED: "CONFIRMED",
    DeploymentStatus.UNCONFIRMED: "UNCONFIRMED",
    DeploymentStatus.ADDRESS_ERROR: "ADDRESS_ERROR",
}


def _load_config(config_path, build_dir=None, testnet=False):
    """Load config or exit 1 with a diagnostic."""
    from tonchestra.config import load_config, TESTNET_ENDPOINT, MAINNET_ENDPOINT

    try:
        config = load_config(Path(config_path) if config_path else None)
    except (FileNotFoundError, FatalError) as e:
        click.echo(f"✗ Config not loaded: {e}", err=True)
        raise SystemExit(1)

    if build_dir:
        config.build_dir = build_dir
    if testnet and not config.testnet:
        config.testnet = True
        if config.endpoint == MAINNET_ENDPOINT:
            config.endpoint = TESTNET_ENDPOINT
    return config


def print_report(report: DeploymentReport) -> None:
    """Print every unit's outcome followed by per-status counts."""
    click.echo("")
    click.echo("=" * 65)
    click.echo("Deployment report")
    click.echo("=" * 65)
    if not report.targets:
        click.echo("No units processed.")
    for target in report.targets:
        label = STATUS_LABELS[target.status]
        click.echo(f"  {label:<13} {target.name}  {target.address or '-'}")
        if target.error:
            click.echo(f"                {target.error}")
    click.echo("")
    counts = report.counts()
    click.echo(
        "Skipped: {skipped}  Confirmed: {confirmed}  Unconfirmed: {unconfirmed}  "
        "Address errors: {address_error}  Submitted: {submitted}".format(**counts)
    )


@click.group()
@click.version_option(version=__version__, prog_name="tonchestra")
def main():
    """
    tonchestra - Deployment orchestrator for TON contracts.

    Derives contract addresses from build output and deploys the ones
    that are not on chain yet.
    """


@main.command("deploy")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to config.yaml")
@click.option("--build-dir", help="Override the build directory")
@click.option("--testnet", is_flag=True, help="Deploy to testnet")
@click.option("--no-wait", is_flag=True, help="Do not poll for confirmation after sending")
@click.option("--strict", is_flag=True, help=f"Exit {EXIT_UNCONFIRMED} if any unit is not confirmed")
def deploy(config_path, build_dir, testnet: bool, no_wait: bool, strict: bool):
    """
    Deploy every unit in the build directory.

    Units already deployed are skipped. Fatal problems (missing mnemonic,
    broken build output, underfunded wallet) stop the run with exit 1.

    Examples:

        tonchestra deploy

        tonchestra deploy --testnet --build-dir build

        tonchestra deploy --no-wait
    """
    from tonchestra.orchestrator import run_deployment
    from tonchestra.utils import (
        format_duration,
        print_banner,
        print_error,
        print_success,
        print_warning,
        setup_logging,
    )

    config = _load_config(config_path, build_dir=build_dir, testnet=testnet)
    if no_wait:
        config.wait_for_confirmation = False
    setup_logging(config.log_level, config.log_format, config.log_file)

    print_banner("Deploy script running, let's find some contracts to deploy")
    try:
        report = run_deployment(config)
    except InsufficientFundsError as e:
        if e.report is not None:
            print_report(e.report)
        print_error(f"ERROR: {e}")
        raise SystemExit(1)
    except FatalError as e:
        print_error(f"ERROR: {e}")
        raise SystemExit(1)

    print_report(report)
    if report.duration_ms is not None:
        click.echo(f"Duration: {format_duration(report.duration_ms / 1000)}")
    submitted = report.counts()[DeploymentStatus.SUBMITTED.value]
    if report.has_unconfirmed:
        print_warning("Some units were not confirmed, re-run deploy to retry them")
    elif submitted:
        print_warning(f"{submitted} units sent but not confirmed (--no-wait)")
    else:
        print_success("All units deployed")
    if strict and report.has_unconfirmed:
        raise SystemExit(EXIT_UNCONFIRMED)


@main.command("addresses")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to config.yaml")
@click.option("--build-dir", help="Override the build directory")
@click.option("--testnet", is_flag=True, help="Show testnet address forms")
def addresses(config_path, build_dir, testnet: bool):
    """
    Show the derived address of every unit.

    Works offline: no chain calls and no mnemonic needed.

    Example:

        tonchestra addresses --build-dir build
    """
    from tonchestra.orchestrator import resolve_addresses

    config = _load_config(config_path, build_dir=build_dir, testnet=testnet)
    try:
        results = resolve_addresses(config)
    except FatalError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    if not results:
        click.echo(f"No units found in {config.build_dir}")
        return

    for unit, address, error in results:
        if error:
            click.echo(f"{unit.name}: ✗ {error}")
        else:
            click.echo(f"{unit.name}: {address}")


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize tonchestra configuration."""
    from tonchestra.config import get_tonchestra_home, MAINNET_ENDPOINT
    import yaml

    home = get_tonchestra_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = {
        "endpoint": MAINNET_ENDPOINT,
        "testnet": False,
        "workchain": -1,
        "build_dir": "build",
        "funding_amount": "0.02",
        "min_wallet_balance": "0.2",
        "poll_interval": 2.0,
        "poll_attempts": 10,
        "requests_per_second": 0.5,
        "env_file": str(home / ".env"),
        "log_level": "INFO",
        "log_format": "pretty",
    }
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# DEPLOYER_MNEMONIC=word1 word2 ... word24\n# TONCENTER_API_KEY=...\n")

    click.echo(f"Initialized tonchestra config at {cfg_path}")
    click.echo(f"Put DEPLOYER_MNEMONIC in {env_path} before deploying.")


if __name__ == "__main__":
    main()
