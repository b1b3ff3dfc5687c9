"""
contractcase Configuration

Loads all sections of config.toml.
Environment variables override TOML values.
"""

from .loader import (
    CaseConfig,
    ChainConfig,
    DataSourceConfig,
    ReportConfig,
    LoggingConfig,
    PACKAGE_DATA_DIR,
    load_config,
)

__all__ = [
    "CaseConfig",
    "ChainConfig",
    "DataSourceConfig",
    "ReportConfig",
    "LoggingConfig",
    "PACKAGE_DATA_DIR",
    "load_config",
]
