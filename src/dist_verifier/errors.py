"""
Error types raised while building and comparing file maps.

Every error the CLI reports derives from ``VerifierError`` so the entry point
can catch them in one place. Comparison and reporting never raise.
"""

from pathlib import Path


class VerifierError(Exception):
    """Base class for all verification failures."""


class UsageError(VerifierError):
    """Invalid, conflicting or missing arguments or configuration values."""


class FileAccessError(VerifierError):
    """A local file or directory could not be listed or read."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class ManifestParseError(VerifierError):
    """The assets manifest is not valid JSON or does not match the schema."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class NetworkError(VerifierError):
    """The asset canister could not be reached or its reply could not be decoded."""

    def __init__(self, canister_id: str, message: str):
        self.canister_id = canister_id
        super().__init__(f"canister {canister_id}: {message}")
