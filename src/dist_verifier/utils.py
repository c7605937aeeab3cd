"""
Shared helpers for hashing files and normalizing asset keys.

This module centralizes the small pieces used by both the directory walker and
the manifest sources so that every digest and key is produced the same way.
"""

import hashlib
import json
from pathlib import Path, PurePath
from typing import Iterable, Mapping

from .errors import FileAccessError, ManifestParseError

DEFAULT_CHUNK_SIZE = 1024 * 1024


def calculate_file_hash(file_path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """
    Calculate SHA256 hash of a file.

    Args:
        file_path (Path): Path to the file on disk.
        chunk_size (int): Number of bytes read per iteration.

    Returns:
        str: Lowercase hex-encoded SHA256 hash.

    Raises:
        FileAccessError: If the file cannot be opened or read.
    """
    hash_sha256 = hashlib.sha256()
    try:
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hash_sha256.update(chunk)
    except OSError as e:
        raise FileAccessError(file_path, f"cannot read file: {e}") from e
    return hash_sha256.hexdigest()


def bytes_to_hex(data: Iterable[int]) -> str:
    """
    Encode a byte sequence as lowercase hex, two zero-padded digits per byte.

    Args:
        data (Iterable[int]): ``bytes`` or any iterable of ints in 0..255.

    Returns:
        str: Hex string, e.g. ``[0xDE, 0xAD]`` -> ``"dead"``.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data).hex()
    # bytes() rejects values outside 0..255 with ValueError
    return bytes(list(data)).hex()


def to_file_key(relative_path: PurePath) -> str:
    """
    Build a file key from a path relative to the dist directory.

    Args:
        relative_path (PurePath): Relative path, e.g. ``sub/dir/file.txt``.

    Returns:
        str: Slash-prefixed POSIX key like ``/sub/dir/file.txt``.
    """
    return "/" + relative_path.as_posix()


def save_files_map(files_map: Mapping[str, str], output_path: Path) -> None:
    """
    Save a file map as JSON (sorted keys, indented).

    Args:
        files_map (Mapping[str, str]): Key -> digest map.
        output_path (Path): Destination file.
    """
    try:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(dict(files_map), f, indent=2, sort_keys=True)
            f.write("\n")
    except OSError as e:
        raise FileAccessError(output_path, f"cannot write file map: {e}") from e


def load_files_map(input_path: Path) -> Mapping[str, str]:
    """
    Load a ``{key: digest}`` JSON mapping written by ``save_files_map``.

    Raises:
        FileAccessError: If the file cannot be read.
        ManifestParseError: If it is not a JSON object of strings.
    """
    try:
        with open(input_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise FileAccessError(input_path, f"cannot read file map: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestParseError(input_path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ManifestParseError(input_path, "expected an object of path -> hash strings")
    return data
