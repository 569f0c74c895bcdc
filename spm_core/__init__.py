"""Core pieces of the Swift package release plugin."""

from .config import ArchiveConfig, PluginConfig, TestConfig, load_config
from .context import RunContext
from .errors import (
    ArchiveError,
    ArchiveWriteError,
    CancellationError,
    ConfigurationError,
    ExternalToolError,
    NotFoundError,
    RegistryError,
    SpmReleaseError,
)

__all__ = [
    "ArchiveConfig",
    "PluginConfig",
    "TestConfig",
    "load_config",
    "RunContext",
    "ArchiveError",
    "ArchiveWriteError",
    "CancellationError",
    "ConfigurationError",
    "ExternalToolError",
    "NotFoundError",
    "RegistryError",
    "SpmReleaseError",
]
