"""Schema definitions for package metadata and installed configuration."""

from .config import GraphicsOptions, StgConfig, TerminalOptions, config_paths
from .package import PackageMetadata, load_package_metadata

__all__ = [
    "GraphicsOptions",
    "PackageMetadata",
    "StgConfig",
    "TerminalOptions",
    "config_paths",
    "load_package_metadata",
]
