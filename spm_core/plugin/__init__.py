"""Plugin-facing types and helpers shared with the release pipeline."""

from .config_parser import ConfigParser, coerce_bool
from .types import (
    ExecuteRequest,
    ExecuteResponse,
    Hook,
    PluginInfo,
    ReleaseContext,
    ValidateResponse,
    ValidationIssue,
)
from .validation import ValidationBuilder

__all__ = [
    "ConfigParser",
    "coerce_bool",
    "ExecuteRequest",
    "ExecuteResponse",
    "Hook",
    "PluginInfo",
    "ReleaseContext",
    "ValidateResponse",
    "ValidationIssue",
    "ValidationBuilder",
]
