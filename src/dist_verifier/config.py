"""
Run configuration.

Values come from, lowest precedence first: built-in defaults, an optional YAML
file, environment variables (a ``.env`` file is loaded first), and finally CLI
flags applied by the caller.

Example config.yaml::

    ic_host: https://icp-api.io
    hash_workers: 8
    chunk_size: 1048576
    show_progress: true
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv

from .asset_sources import DEFAULT_IC_HOST
from .errors import FileAccessError, UsageError
from .file_mapper import default_hash_workers
from .utils import DEFAULT_CHUNK_SIZE

ENV_IC_HOST = "IC_HOST"
ENV_HASH_WORKERS = "DIST_VERIFIER_WORKERS"


@dataclass(frozen=True)
class VerifierConfig:
    ic_host: str = DEFAULT_IC_HOST
    hash_workers: int = field(default_factory=default_hash_workers)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    show_progress: bool = False


_FIELD_TYPES = {
    "ic_host": str,
    "hash_workers": int,
    "chunk_size": int,
    "show_progress": bool,
}


def _check_value(name: str, value, source: str):
    expected = _FIELD_TYPES[name]
    # bool is an int subclass; reject it for numeric fields
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise UsageError(
            f"{source}: '{name}' must be {expected.__name__}, got {value!r}"
        )
    if expected is int and value < 1:
        raise UsageError(f"{source}: '{name}' must be positive, got {value}")
    return value


def _load_yaml(config_path: Path) -> dict:
    try:
        with config_path.open("r") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise FileAccessError(config_path, f"cannot read config: {e}") from e
    except yaml.YAMLError as e:
        raise UsageError(f"{config_path}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise UsageError(f"{config_path}: expected a mapping at the top level")

    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise UsageError(f"{config_path}: unknown config keys: {', '.join(unknown)}")

    return {name: _check_value(name, value, str(config_path)) for name, value in data.items()}


def _load_env() -> dict:
    values = {}
    host = os.getenv(ENV_IC_HOST)
    if host:
        values["ic_host"] = host
    workers = os.getenv(ENV_HASH_WORKERS)
    if workers:
        try:
            values["hash_workers"] = _check_value("hash_workers", int(workers), ENV_HASH_WORKERS)
        except ValueError as e:
            raise UsageError(f"{ENV_HASH_WORKERS}: expected an integer, got {workers!r}") from e
    return values


def load_config(config_path: Path | str | None = None) -> VerifierConfig:
    """
    Build the run configuration.

    Args:
        config_path (Path | str | None): Optional YAML file.

    Returns:
        VerifierConfig: Defaults overlaid with file and environment values.

    Raises:
        UsageError: On invalid keys or values.
        FileAccessError: If the config file cannot be read.
    """
    load_dotenv(find_dotenv(usecwd=True))
    config = VerifierConfig()
    if config_path is not None:
        config = replace(config, **_load_yaml(Path(config_path)))
    return replace(config, **_load_env())
