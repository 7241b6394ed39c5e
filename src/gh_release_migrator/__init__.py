"""
GitHub Release Migration Tool

Migrates releases and their assets from one GitHub repository to another,
preserving tag, name, commitish and latest status. Safe to re-run against a
partially migrated target.
"""

from __future__ import annotations

from .cli import main
from .config import MigrationConfig, load_config
from .directory import ReleaseDirectory
from .engine import ReleaseMigrator
from .exceptions import (
    ConfigurationError,
    ConflictError,
    MigrationError,
    NotFoundError,
    TransferError,
)
from .models import Asset, MigrationOutcome, Release, RepositoryRef
from .transfer import AssetTransfer
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "Asset",
    "AssetTransfer",
    "ConfigurationError",
    "ConflictError",
    "MigrationConfig",
    "MigrationError",
    "MigrationOutcome",
    "NotFoundError",
    "Release",
    "ReleaseDirectory",
    "ReleaseMigrator",
    "RepositoryRef",
    "TransferError",
    "load_config",
    "main",
    "setup_logging",
]
