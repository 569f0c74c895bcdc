"""Wrappers for the external tools the plugin drives."""

from .git import create_git_tag
from .process import run_command
from .swift import SwiftCLI, swift_available

__all__ = ["create_git_tag", "run_command", "SwiftCLI", "swift_available"]
