"""
Sources of the "expected" file map.

Two interchangeable sources produce the same ``key -> sha256`` mapping:

* ``AssetsJsonSource`` reads a static assets manifest (JSON) where each
  ``sha256`` is an optional one-element list holding a hex string.
* ``CanisterSource`` runs the ``list`` query of an asset canister where each
  ``sha256`` is an optional byte vector.

Only the first ``identity`` encoding of each asset is used. Assets without one,
or whose identity encoding carries no digest, contribute nothing.

Trust boundary: ``CanisterSource`` does NOT verify query response signatures.
The reply is trusted on the strength of the HTTPS transport to the boundary
node only.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping

from jsonschema import Draft7Validator

from .errors import FileAccessError, ManifestParseError, NetworkError
from .utils import bytes_to_hex

IDENTITY_ENCODING = "identity"
DEFAULT_IC_HOST = "https://icp-api.io"

ASSETS_JSON_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["key", "encodings"],
        "properties": {
            "key": {"type": "string"},
            "encodings": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["content_encoding"],
                    "properties": {
                        "content_encoding": {"type": "string"},
                        "sha256": {
                            "anyOf": [
                                {"type": "null"},
                                {
                                    "type": "array",
                                    "maxItems": 1,
                                    "items": {
                                        "type": "string",
                                        # pattern uses re.search, where $ also matches before "\n"
                                        "minLength": 64,
                                        "maxLength": 64,
                                        "pattern": "^[0-9a-fA-F]{64}$",
                                    },
                                },
                            ]
                        },
                    },
                },
            },
        },
    },
}

ASSET_CANISTER_CANDID = """
type AssetEncodingDetails = record {
  modified : int;
  sha256 : opt vec nat8;
  length : nat;
  content_encoding : text;
};
type AssetDetails = record {
  key : text;
  encodings : vec AssetEncodingDetails;
  content_type : text;
};
service : {
  list : (record {}) -> (vec AssetDetails) query;
}
"""


def _identity_digest(asset: Mapping[str, Any]) -> Any | None:
    """Return the raw digest of the first identity encoding, or None."""
    for encoding in asset["encodings"]:
        if encoding["content_encoding"] == IDENTITY_ENCODING:
            sha256 = encoding.get("sha256")
            # First identity entry wins even when it has no digest
            return sha256[0] if sha256 else None
    return None


def files_map_from_assets(
    assets: Iterable[Mapping[str, Any]], decode_digest: Callable[[Any], str]
) -> Mapping[str, str]:
    """
    Collapse asset records into a file map.

    Args:
        assets (Iterable[Mapping[str, Any]]): Records with ``key`` and ``encodings``.
        decode_digest (Callable[[Any], str]): Turns a raw digest into lowercase hex.

    Returns:
        Mapping[str, str]: Asset key -> lowercase hex digest.
    """
    files_map: Dict[str, str] = {}
    for asset in assets:
        digest = _identity_digest(asset)
        if digest is not None:
            files_map[asset["key"]] = decode_digest(digest)
    return MappingProxyType(files_map)


def _format_json_path(error_path: Iterable[Any]) -> str:
    out = "$"
    for part in error_path:
        out += f"[{part}]" if isinstance(part, int) else f".{part}"
    return out


def parse_assets_json(file_path: Path | str) -> Mapping[str, str]:
    """
    Parse an assets manifest file into a file map.

    Args:
        file_path (Path | str): Path to the JSON manifest.

    Returns:
        Mapping[str, str]: Asset key -> lowercase hex digest.

    Raises:
        FileAccessError: If the file cannot be read.
        ManifestParseError: If the document is not valid JSON or does not
            match ``ASSETS_JSON_SCHEMA``.
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FileAccessError(path, f"cannot read assets manifest: {e}") from e

    try:
        assets = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestParseError(path, f"invalid JSON: {e}") from e

    errors = sorted(
        Draft7Validator(ASSETS_JSON_SCHEMA).iter_errors(assets),
        key=lambda err: [str(p) for p in err.absolute_path],
    )
    if errors:
        first = errors[0]
        message = f"{_format_json_path(first.absolute_path)}: {first.message}"
        if len(errors) > 1:
            message += f" (and {len(errors) - 1} more errors)"
        raise ManifestParseError(path, message)

    return files_map_from_assets(assets, str.lower)


def _create_asset_canister(canister_id: str, host: str) -> Any:
    """Build an anonymous ic-py canister handle for the asset canister interface."""
    from ic.agent import Agent
    from ic.canister import Canister
    from ic.client import Client
    from ic.identity import Identity

    agent = Agent(Identity(anonymous=True), Client(url=host))
    return Canister(agent=agent, canister_id=canister_id, candid=ASSET_CANISTER_CANDID)


def _unwrap_list_reply(reply: Any) -> list:
    # ic-py returns one value per declared return type
    if isinstance(reply, list) and len(reply) == 1 and isinstance(reply[0], list):
        return reply[0]
    if isinstance(reply, list):
        return reply
    raise TypeError(f"unexpected reply type {type(reply).__name__}")


def get_assets_from_canister(
    canister_id: str,
    host: str = DEFAULT_IC_HOST,
    canister_factory: Callable[[str, str], Any] = _create_asset_canister,
) -> Mapping[str, str]:
    """
    Fetch the asset list of a canister and turn it into a file map.

    Query signatures are not verified; see the module docstring.

    Args:
        canister_id (str): Textual principal of the asset canister.
        host (str): Boundary node URL.
        canister_factory (Callable[[str, str], Any]): Returns an object with a
            ``list`` method, given ``(canister_id, host)``.

    Returns:
        Mapping[str, str]: Asset key -> lowercase hex digest.

    Raises:
        NetworkError: If the canister cannot be reached or the reply cannot be
            decoded.
    """
    try:
        canister = canister_factory(canister_id, host)
        reply = canister.list({})
    except Exception as e:
        raise NetworkError(canister_id, f"list query failed: {e}") from e

    try:
        return files_map_from_assets(_unwrap_list_reply(reply), bytes_to_hex)
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise NetworkError(canister_id, f"cannot decode list reply: {e}") from e


class AssetSource(ABC):
    """Produces the expected file map for one verification run."""

    @abstractmethod
    def produce_expected_map(self) -> Mapping[str, str]:
        """Return the expected asset key -> lowercase hex digest map."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable name of the source for status output."""


class AssetsJsonSource(AssetSource):
    """Expected file map read from a static assets manifest."""

    def __init__(self, file_path: Path | str):
        self.file_path = Path(file_path)

    def produce_expected_map(self) -> Mapping[str, str]:
        return parse_assets_json(self.file_path)

    def describe(self) -> str:
        return f"assets manifest {self.file_path}"


class CanisterSource(AssetSource):
    """Expected file map fetched from a live asset canister (unverified queries)."""

    def __init__(
        self,
        canister_id: str,
        host: str = DEFAULT_IC_HOST,
        canister_factory: Callable[[str, str], Any] = _create_asset_canister,
    ):
        self.canister_id = canister_id
        self.host = host
        self.canister_factory = canister_factory

    def produce_expected_map(self) -> Mapping[str, str]:
        return get_assets_from_canister(
            self.canister_id, self.host, canister_factory=self.canister_factory
        )

    def describe(self) -> str:
        return f"canister {self.canister_id} via {self.host}"
