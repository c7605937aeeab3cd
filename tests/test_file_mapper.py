import os
import sys

import pytest

from conftest import sha256_hex
from dist_verifier.errors import FileAccessError
from dist_verifier.file_mapper import FileMapper, create_files_map

needs_symlinks = pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")


def _write(root, rel, data: bytes):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def test_nested_files_get_slash_prefixed_posix_keys(dist_dir):
    _write(dist_dir, "index.html", b"<html></html>")
    _write(dist_dir, "sub/dir/file.txt", b"text")

    files_map = create_files_map(dist_dir)

    assert files_map == {
        "/index.html": sha256_hex(b"<html></html>"),
        "/sub/dir/file.txt": sha256_hex(b"text"),
    }


def test_empty_directories_contribute_nothing(dist_dir):
    (dist_dir / "empty" / "deeper").mkdir(parents=True)
    _write(dist_dir, "a.js", b"a")

    assert list(create_files_map(dist_dir)) == ["/a.js"]


def test_empty_root_gives_empty_map(dist_dir):
    assert create_files_map(dist_dir) == {}


def test_order_is_stable_and_name_sorted(dist_dir):
    for rel in ["b.js", "a/z.js", "a/b.js", "c/d/e.js", "0.js"]:
        _write(dist_dir, rel, rel.encode())

    keys = [key for key, _ in FileMapper(dist_dir).list_files()]

    assert keys == ["/0.js", "/b.js", "/a/b.js", "/a/z.js", "/c/d/e.js"]
    assert list(create_files_map(dist_dir, hash_workers=1)) == keys
    assert list(create_files_map(dist_dir, hash_workers=8)) == keys


def test_many_files_hashed_in_parallel(dist_dir):
    expected = {}
    for i in range(200):
        data = f"chunk-{i}".encode() * (i + 1)
        _write(dist_dir, f"assets/{i % 7}/file-{i}.bin", data)
        expected[f"/assets/{i % 7}/file-{i}.bin"] = sha256_hex(data)

    files_map = FileMapper(dist_dir, hash_workers=16, chunk_size=64).create_files_map()

    assert files_map == expected


def test_missing_root_raises(tmp_path):
    with pytest.raises(FileAccessError) as exc_info:
        create_files_map(tmp_path / "does-not-exist")

    assert exc_info.value.path == tmp_path / "does-not-exist"


def test_root_that_is_a_file_raises(tmp_path):
    path = _write(tmp_path, "not-a-dir", b"x")

    with pytest.raises(FileAccessError):
        create_files_map(path)


def test_hash_failure_aborts_whole_walk(dist_dir, monkeypatch):
    _write(dist_dir, "a.js", b"a")
    bad = _write(dist_dir, "b.js", b"b")

    from dist_verifier import file_mapper

    real_hash = file_mapper.calculate_file_hash

    def flaky_hash(path, chunk_size):
        if path == bad:
            raise FileAccessError(path, "cannot read file: permission denied")
        return real_hash(path, chunk_size)

    monkeypatch.setattr(file_mapper, "calculate_file_hash", flaky_hash)

    with pytest.raises(FileAccessError) as exc_info:
        create_files_map(dist_dir)

    assert exc_info.value.path == bad


@needs_symlinks
def test_symlink_to_file_is_hashed_as_target_content(dist_dir, tmp_path):
    target = _write(tmp_path, "outside.txt", b"linked content")
    os.symlink(target, dist_dir / "link.txt")

    assert create_files_map(dist_dir) == {"/link.txt": sha256_hex(b"linked content")}


@needs_symlinks
def test_symlink_to_directory_fails_walk(dist_dir):
    _write(dist_dir, "real/a.js", b"a")
    os.symlink(dist_dir / "real", dist_dir / "loop")

    with pytest.raises(FileAccessError) as exc_info:
        create_files_map(dist_dir)

    assert exc_info.value.path == dist_dir / "loop"
    assert "not a regular file" in str(exc_info.value)


@needs_symlinks
def test_broken_symlink_fails_walk(dist_dir):
    os.symlink(dist_dir / "missing-target", dist_dir / "dangling")

    with pytest.raises(FileAccessError):
        create_files_map(dist_dir)


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="mkfifo not available")
def test_fifo_fails_walk_without_blocking(dist_dir):
    os.mkfifo(dist_dir / "pipe")

    with pytest.raises(FileAccessError):
        create_files_map(dist_dir)


def test_files_map_is_read_only(dist_dir):
    _write(dist_dir, "a.js", b"a")

    files_map = create_files_map(dist_dir)

    with pytest.raises(TypeError):
        files_map["/b.js"] = sha256_hex(b"b")


def test_cancelled_walk_fails_without_partial_map(dist_dir):
    _write(dist_dir, "a.js", b"a")
    mapper = FileMapper(dist_dir)
    mapper.cancel()

    with pytest.raises(FileAccessError, match="walk cancelled"):
        mapper.create_files_map()
    assert mapper.cancelled


def test_cancel_during_hashing_stops_remaining_files(dist_dir, monkeypatch):
    for i in range(20):
        _write(dist_dir, f"file-{i:02d}.bin", b"x")

    from dist_verifier import file_mapper

    real_hash = file_mapper.calculate_file_hash
    hashed = []
    mapper = FileMapper(dist_dir, hash_workers=1)

    def hash_then_cancel(path, chunk_size):
        hashed.append(path)
        mapper.cancel()
        return real_hash(path, chunk_size)

    monkeypatch.setattr(file_mapper, "calculate_file_hash", hash_then_cancel)

    with pytest.raises(FileAccessError, match="walk cancelled"):
        mapper.create_files_map()
    assert len(hashed) == 1
