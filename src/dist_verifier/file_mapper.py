"""
Directory walker that builds the "actual" file map of a dist directory.

Every regular file under the root becomes one entry keyed by its slash-prefixed
POSIX relative path. Symlinked directories are not followed; a symlink to a
directory, a broken symlink or any special file fails the whole walk.
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from tqdm import tqdm

from .errors import FileAccessError
from .utils import DEFAULT_CHUNK_SIZE, calculate_file_hash, to_file_key


def default_hash_workers() -> int:
    """Thread count used for hashing when none is configured."""
    return min(32, (os.cpu_count() or 1) + 4)


class FileMapper:
    """Hashes every file below a dist directory into a path -> digest map."""

    def __init__(
        self,
        dist_dir: Path | str,
        hash_workers: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        show_progress: bool = False,
    ):
        """
        Initialize the file mapper.

        Args:
            dist_dir (Path | str): Root of the built assets.
            hash_workers (int | None): Threads used for hashing.
            chunk_size (int): Read size for streaming hashes.
            show_progress (bool): Show a tqdm bar while hashing.
        """
        self.dist_dir = Path(dist_dir)
        self.hash_workers = hash_workers or default_hash_workers()
        self.chunk_size = chunk_size
        self.show_progress = show_progress
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop an in-progress walk; it then fails with ``FileAccessError``."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise FileAccessError(self.dist_dir, "walk cancelled")

    def list_files(self) -> List[Tuple[str, Path]]:
        """
        Enumerate all files below the dist directory.

        Returns:
            List[Tuple[str, Path]]: ``(key, path)`` pairs in name order per directory.

        Raises:
            FileAccessError: If the root or any directory cannot be listed, or
                an entry is neither a directory nor a regular file.
        """
        if not self.dist_dir.is_dir():
            raise FileAccessError(self.dist_dir, "dist directory not found")

        files: List[Tuple[str, Path]] = []
        stack = [self.dist_dir]
        while stack:
            self._check_cancelled()
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                raise FileAccessError(directory, f"cannot list directory: {e}") from e

            subdirs = []
            for entry in entries:
                path = Path(entry.path)
                try:
                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(path)
                    elif entry.is_file():
                        rel_path = path.relative_to(self.dist_dir)
                        files.append((to_file_key(rel_path), path))
                    else:
                        raise FileAccessError(path, "not a regular file")
                except OSError as e:
                    raise FileAccessError(path, f"cannot stat entry: {e}") from e

            # Reversed so the next pop visits subdirectories in name order
            stack.extend(reversed(subdirs))

        return files

    def _hash_entry(self, item: Tuple[str, Path]) -> Tuple[str, str]:
        key, path = item
        self._check_cancelled()
        return key, calculate_file_hash(path, self.chunk_size)

    def create_files_map(self) -> Mapping[str, str]:
        """
        Hash every file and return the actual file map.

        Returns:
            Mapping[str, str]: File key -> lowercase SHA256 hex digest.

        Raises:
            FileAccessError: On any listing or read failure. No partial map is
                returned, including when the walk is cancelled.
        """
        files = self.list_files()
        files_map: Dict[str, str] = {}

        with ThreadPoolExecutor(max_workers=self.hash_workers) as executor:
            results = executor.map(self._hash_entry, files)
            for key, digest in tqdm(
                results,
                total=len(files),
                desc="Hashing files",
                unit="file",
                disable=not self.show_progress,
            ):
                files_map[key] = digest

        return MappingProxyType(files_map)


def create_files_map(
    dist_dir: Path | str,
    hash_workers: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    show_progress: bool = False,
) -> Mapping[str, str]:
    """Build the actual file map for ``dist_dir``."""
    return FileMapper(
        dist_dir,
        hash_workers=hash_workers,
        chunk_size=chunk_size,
        show_progress=show_progress,
    ).create_files_map()
