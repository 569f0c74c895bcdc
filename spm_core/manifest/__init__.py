"""Package manifest helpers."""

from .editor import extract_tools_version, update_version_constant
from .models import Dependency, PackageManifest, Platform, Product, Target

__all__ = [
    "extract_tools_version",
    "update_version_constant",
    "Dependency",
    "PackageManifest",
    "Platform",
    "Product",
    "Target",
]
