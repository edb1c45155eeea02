"""
Configuration management for tonchestra.

Loads config.yaml from the tonchestra home directory (or an explicit path),
loads secrets from a .env file, and validates the deployment settings.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from tonsdk.utils import to_nano

from tonchestra.errors import ConfigError


MAINNET_ENDPOINT = "https://toncenter.com/api/v2/jsonRPC"
TESTNET_ENDPOINT = "https://testnet.toncenter.com/api/v2/jsonRPC"

DEFAULT_FUNDING_AMOUNT = 20_000_000         # 0.02 TON
DEFAULT_MIN_WALLET_BALANCE = 200_000_000    # 0.2 TON
MIN_FUNDING_AMOUNT = 10_000_000             # 0.01 TON

# Keys holding TON amounts in config.yaml (converted to nanotons on load)
AMOUNT_KEYS = ("funding_amount", "min_wallet_balance")


def get_tonchestra_home() -> Path:
    """Return the tonchestra home directory (TONCHESTRA_HOME or ~/.config/tonchestra)."""
    home = os.environ.get("TONCHESTRA_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/tonchestra").expanduser()


def parse_ton_amount(key: str, value: Any) -> int:
    """
    Convert a TON amount from config into nanotons.

    Args:
        key: Config key (for error messages)
        value: Amount in TON (str, int or float)

    Returns:
        Amount in nanotons

    Raises:
        ConfigError: If the value is not a non-negative number
    """
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ConfigError(f"'{key}' must be an amount in TON, got {value!r}")
    if not amount.is_finite():
        raise ConfigError(f"'{key}' must be a finite amount in TON, got {value!r}")
    if amount < 0:
        raise ConfigError(f"'{key}' must not be negative, got {value!r}")
    return int(to_nano(str(amount), "ton"))


@dataclass
class TonchestraConfig:
    """Complete deployment configuration. Amounts are in nanotons."""

    endpoint: str = MAINNET_ENDPOINT
    api_key: Optional[str] = None
    testnet: bool = False
    workchain: int = -1
    build_dir: str = "build"
    descriptor_pattern: str = "*.deploy.py"
    funding_amount: int = DEFAULT_FUNDING_AMOUNT
    min_wallet_balance: int = DEFAULT_MIN_WALLET_BALANCE
    poll_interval: float = 2.0
    poll_attempts: int = 10
    requests_per_second: float = 0.5
    wait_for_confirmation: bool = True
    mnemonic_env: str = "DEPLOYER_MNEMONIC"
    env_file: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "pretty"
    log_file: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def build_path(self) -> Path:
        return Path(self.build_dir).expanduser()

    @property
    def required_balance(self) -> int:
        """Balance the deployer wallet must hold before any funding transaction."""
        return self.funding_amount + self.min_wallet_balance

    def get_mnemonic(self) -> str:
        """
        Read the deployer mnemonic from the environment.

        Raises:
            ConfigError: If the variable is unset or empty
        """
        mnemonic = os.environ.get(self.mnemonic_env, "").strip()
        if not mnemonic:
            raise ConfigError(
                f"{self.mnemonic_env} not found in environment or .env file"
            )
        return mnemonic

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.endpoint:
            raise ConfigError("'endpoint' is required")
        if self.workchain not in (-1, 0):
            raise ConfigError(f"'workchain' must be -1 or 0, got {self.workchain}")
        if self.funding_amount < MIN_FUNDING_AMOUNT:
            raise ConfigError(
                f"'funding_amount' must be at least {MIN_FUNDING_AMOUNT} nanotons, "
                f"got {self.funding_amount}"
            )
        if self.min_wallet_balance < 0:
            raise ConfigError("'min_wallet_balance' must not be negative")
        if self.poll_interval < 0:
            raise ConfigError("'poll_interval' must not be negative")
        if self.poll_attempts < 1:
            raise ConfigError("'poll_attempts' must be at least 1")
        if self.requests_per_second <= 0:
            raise ConfigError("'requests_per_second' must be positive")
        if self.log_format not in ("pretty", "structured"):
            raise ConfigError(
                f"'log_format' must be 'pretty' or 'structured', got {self.log_format!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TonchestraConfig":
        """Build a config from parsed YAML, converting TON amounts."""
        known = set(cls.__dataclass_fields__) - {"extra"}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in AMOUNT_KEYS:
                kwargs[key] = parse_ton_amount(key, value)
            elif key in known:
                kwargs[key] = value
            else:
                extra[key] = value

        # Testnet flag picks the testnet endpoint unless one is given
        if kwargs.get("testnet") and "endpoint" not in kwargs:
            kwargs["endpoint"] = TESTNET_ENDPOINT

        try:
            config = cls(**kwargs, extra=extra)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        return config

    def __repr__(self) -> str:
        return (
            f"TonchestraConfig(endpoint={self.endpoint}, workchain={self.workchain}, "
            f"build_dir={self.build_dir}, testnet={self.testnet})"
        )


def load_config(config_path: Optional[Path] = None) -> TonchestraConfig:
    """
    Load tonchestra configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to <tonchestra home>/config.yaml

    Returns:
        TonchestraConfig instance

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigError: If the config is invalid
    """
    if config_path is None:
        config_path = get_tonchestra_home() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"tonchestra config.yaml not found at {config_path}. Run 'tonchestra init'."
        )

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    config = TonchestraConfig.from_dict(data)

    # Secrets live in the env file, never in config.yaml
    env_file = Path(config.env_file).expanduser() if config.env_file else Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)

    if not config.api_key:
        config.api_key = os.environ.get("TONCENTER_API_KEY") or None

    config.validate()
    return config
