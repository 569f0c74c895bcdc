"""Command line interface for spm-release."""

from .main import main

__all__ = ["main"]
