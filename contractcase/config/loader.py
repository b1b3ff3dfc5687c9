"""
contractcase TOML Configuration Loader

Loads all sections of config.toml with environment variable overrides.
Each section is a dataclass with from_dict + apply_env.

Environment variable mapping:
    [chain] chain_id        → CONTRACTCASE_CHAIN_ID
    [chain] gas_price       → CONTRACTCASE_GAS_PRICE
    [datasource] data_dir   → CONTRACTCASE_DATA_DIR
    [report] output         → CONTRACTCASE_REPORT
    [logging] level         → CONTRACTCASE_LOG_LEVEL

Sensitive values (the deployer key) MUST come from env vars, never TOML.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import tomli
from eth_utils import is_hexstr, remove_0x_prefix

from ..constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_BLOCK_GAS_LIMIT,
    DEFAULT_GAS,
    DEFAULT_GAS_PRICE,
    DEFAULT_ACCOUNT_COUNT,
    DEFAULT_INITIAL_BALANCE,
    DEFAULT_ACCOUNT_SEED,
    DEFAULT_RECEIPT_ATTEMPTS,
    DEFAULT_RECEIPT_INTERVAL,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Directory holding the data files of the bundled cases
PACKAGE_DATA_DIR = Path(__file__).resolve().parent.parent / "cases" / "data"


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _is_private_key(value: str) -> bool:
    """32 bytes of hex, with or without 0x."""
    if not is_hexstr(value):
        return False
    return len(remove_0x_prefix(value)) == 64


@dataclass
class ChainConfig:
    """[chain] section."""
    chain_id: int = DEFAULT_CHAIN_ID
    block_gas_limit: int = DEFAULT_BLOCK_GAS_LIMIT
    default_gas: int = DEFAULT_GAS
    gas_price: int = DEFAULT_GAS_PRICE
    account_count: int = DEFAULT_ACCOUNT_COUNT
    initial_balance: int = DEFAULT_INITIAL_BALANCE
    account_seed: str = DEFAULT_ACCOUNT_SEED
    receipt_attempts: int = DEFAULT_RECEIPT_ATTEMPTS
    receipt_interval: float = DEFAULT_RECEIPT_INTERVAL
    # env only
    deployer_key: str = field(default="", repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainConfig":
        return cls(
            chain_id=data.get("chain_id", DEFAULT_CHAIN_ID),
            block_gas_limit=data.get("block_gas_limit", DEFAULT_BLOCK_GAS_LIMIT),
            default_gas=data.get("default_gas", DEFAULT_GAS),
            gas_price=data.get("gas_price", DEFAULT_GAS_PRICE),
            account_count=data.get("account_count", DEFAULT_ACCOUNT_COUNT),
            initial_balance=data.get("initial_balance", DEFAULT_INITIAL_BALANCE),
            account_seed=data.get("account_seed", DEFAULT_ACCOUNT_SEED),
            receipt_attempts=data.get("receipt_attempts", DEFAULT_RECEIPT_ATTEMPTS),
            receipt_interval=data.get("receipt_interval", DEFAULT_RECEIPT_INTERVAL),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("CONTRACTCASE_CHAIN_ID"):
            self.chain_id = _env_int("CONTRACTCASE_CHAIN_ID", v)
        if v := os.environ.get("CONTRACTCASE_GAS_PRICE"):
            self.gas_price = _env_int("CONTRACTCASE_GAS_PRICE", v)
        if v := os.environ.get("CONTRACTCASE_DEFAULT_GAS"):
            self.default_gas = _env_int("CONTRACTCASE_DEFAULT_GAS", v)
        if v := os.environ.get("CONTRACTCASE_DEPLOYER_KEY"):
            self.deployer_key = v


@dataclass
class DataSourceConfig:
    """[datasource] section."""
    data_dir: str = str(PACKAGE_DATA_DIR)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataSourceConfig":
        return cls(data_dir=data.get("data_dir", str(PACKAGE_DATA_DIR)))

    def apply_env(self) -> None:
        if v := os.environ.get("CONTRACTCASE_DATA_DIR"):
            self.data_dir = v


@dataclass
class ReportConfig:
    """[report] section."""
    output: str = ""
    fail_fast: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportConfig":
        return cls(
            output=data.get("output", ""),
            fail_fast=data.get("fail_fast", False),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("CONTRACTCASE_REPORT"):
            self.output = v


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=data.get("level", "INFO"),
            file=data.get("file", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("CONTRACTCASE_LOG_LEVEL"):
            self.level = v


@dataclass
class CaseConfig:
    """
    Top-level harness configuration.

    Mirrors every [section] of config.example.toml.
    """
    chain: ChainConfig = field(default_factory=ChainConfig)
    datasource: DataSourceConfig = field(default_factory=DataSourceConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaseConfig":
        """Create CaseConfig from a parsed TOML dict."""
        return cls(
            chain=ChainConfig.from_dict(data.get("chain", {})),
            datasource=DataSourceConfig.from_dict(data.get("datasource", {})),
            report=ReportConfig.from_dict(data.get("report", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "CaseConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults (with env overrides) are used.

        Args:
            config_path: Path to config.toml

        Returns:
            CaseConfig instance
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.chain.apply_env()
        self.datasource.apply_env()
        self.report.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if self.chain.chain_id < 1:
            raise ConfigurationError("chain_id must be >= 1")
        if self.chain.account_count < 1:
            raise ConfigurationError("account_count must be >= 1")
        if self.chain.default_gas > self.chain.block_gas_limit:
            raise ConfigurationError("default_gas must not exceed block_gas_limit")
        if self.chain.gas_price < 0:
            raise ConfigurationError("gas_price must be >= 0")
        if self.chain.receipt_attempts < 1:
            raise ConfigurationError("receipt_attempts must be >= 1")
        if self.chain.deployer_key and not _is_private_key(self.chain.deployer_key):
            raise ConfigurationError("CONTRACTCASE_DEPLOYER_KEY must be 32 bytes of hex")
        if self.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for reports and diagnostics). Secrets are omitted."""
        return {
            "chain": {
                "chain_id": self.chain.chain_id,
                "block_gas_limit": self.chain.block_gas_limit,
                "default_gas": self.chain.default_gas,
                "gas_price": self.chain.gas_price,
                "account_count": self.chain.account_count,
            },
            "datasource": {
                "data_dir": self.datasource.data_dir,
            },
            "report": {
                "output": self.report.output,
                "fail_fast": self.report.fail_fast,
            },
            "logging": {
                "level": self.logging.level,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> CaseConfig:
    """
    Load harness configuration.

    Resolution order:
        1. Explicit *path* argument
        2. CONTRACTCASE_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("CONTRACTCASE_CONFIG", "config.toml")

    cfg = CaseConfig.from_file(path)
    cfg.validate()
    return cfg
