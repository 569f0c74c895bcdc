"""Release plugins shipped with spm-release."""

from .swift_pm import PLUGIN_NAME, PLUGIN_VERSION, SwiftPMPlugin

__all__ = ["PLUGIN_NAME", "PLUGIN_VERSION", "SwiftPMPlugin"]
