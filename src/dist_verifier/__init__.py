"""Verify a built dist directory against expected asset hashes."""

from .asset_sources import AssetSource, AssetsJsonSource, CanisterSource
from .comparator import Discrepancies, HashMismatch, compare_file_maps
from .errors import (
    FileAccessError,
    ManifestParseError,
    NetworkError,
    UsageError,
    VerifierError,
)
from .file_mapper import FileMapper, create_files_map

__version__ = "0.1.0"
