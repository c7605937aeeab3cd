"""
Verify a dist directory against expected asset hashes.

Compares the SHA256 of every file under --distDir with the identity-encoding
hashes of either an assets manifest (--assetsJson) or a live asset canister
(--canisterId).

Usage:
    verify-dist --distDir dist/ --assetsJson assets.json
    verify-dist --distDir dist/ --canisterId ryjl3-tyaaa-aaaaa-aaaba-cai

Canister queries are NOT signature-verified: the reply is trusted on the
strength of the HTTPS connection to the boundary node only.

Exit codes: 0 on a completed comparison, 1 on errors, 2 on usage errors,
3 when --fail-on-mismatch is set and discrepancies were found.
"""

import argparse
import json
import sys
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import replace
from pathlib import Path
from typing import List, Mapping, Tuple

from .asset_sources import AssetsJsonSource, AssetSource, CanisterSource
from .comparator import compare_file_maps
from .config import VerifierConfig, load_config
from .errors import UsageError, VerifierError
from .file_mapper import FileMapper
from .reporter import log_discrepancies
from .utils import save_files_map

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MISMATCH = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verify-dist",
        usage="%(prog)s --distDir <distDir> (--assetsJson <filePath> | --canisterId <id>)",
        description="Verify a dist directory against expected asset hashes",
        epilog="Canister queries are not signature-verified; the HTTPS transport is trusted.",
    )
    parser.add_argument(
        "-d",
        "--distDir",
        "--dist-dir",
        dest="dist_dir",
        type=Path,
        required=True,
        help="Path to the dist directory",
    )
    parser.add_argument(
        "-f",
        "--assetsJson",
        "--assets-json",
        dest="assets_json",
        type=Path,
        help="Path to the assets json file",
    )
    parser.add_argument(
        "-c",
        "--canisterId",
        "--canister-id",
        dest="canister_id",
        help="Canister ID to fetch assets from",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML config file (ic_host, hash_workers, chunk_size, show_progress)",
    )
    parser.add_argument(
        "--host",
        help="Boundary node URL for canister queries (overrides config and IC_HOST)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of threads used to hash files",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while hashing",
    )
    parser.add_argument(
        "--save-hashes",
        type=Path,
        help="Write the dist directory file map to this JSON file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print discrepancies as JSON instead of the text report",
    )
    parser.add_argument(
        "--fail-on-mismatch",
        action="store_true",
        help=f"Exit with status {EXIT_MISMATCH} when any discrepancy is found",
    )
    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Reject argument combinations argparse cannot express. Performs no I/O."""
    if args.assets_json and args.canister_id:
        raise UsageError("--assetsJson and --canisterId are mutually exclusive.")
    if not args.assets_json and not args.canister_id:
        raise UsageError("You must specify either --assetsJson or --canisterId.")
    if args.workers is not None and args.workers < 1:
        raise UsageError("--workers must be a positive integer.")


def apply_cli_overrides(config: VerifierConfig, args: argparse.Namespace) -> VerifierConfig:
    overrides = {}
    if args.host:
        overrides["ic_host"] = args.host
    if args.workers:
        overrides["hash_workers"] = args.workers
    if args.progress:
        overrides["show_progress"] = True
    return replace(config, **overrides)


def build_source(args: argparse.Namespace, config: VerifierConfig) -> AssetSource:
    """Select the expected-map source once for the whole run."""
    if args.assets_json:
        return AssetsJsonSource(args.assets_json)
    return CanisterSource(args.canister_id, host=config.ic_host)


def build_file_maps(
    source: AssetSource, mapper: FileMapper
) -> Tuple[Mapping[str, str], Mapping[str, str]]:
    """
    Build the expected and actual file maps concurrently.

    If the expected side fails first the walk is cancelled, so the error is
    reported without hashing the rest of the tree. A failing walk does not
    interrupt a canister query already in flight.

    Returns:
        Tuple[Mapping[str, str], Mapping[str, str]]: ``(expected, actual)``.
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        expected_future = executor.submit(source.produce_expected_map)
        actual_future = executor.submit(mapper.create_files_map)
        wait([expected_future, actual_future], return_when=FIRST_EXCEPTION)
        if expected_future.done() and expected_future.exception() is not None:
            mapper.cancel()
        return expected_future.result(), actual_future.result()


def main(argv: List[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        validate_args(args)
        config = apply_cli_overrides(load_config(args.config), args)
    except UsageError as e:
        parser.error(str(e))
    except VerifierError as e:
        print(f"❌ Failed to complete process: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        source = build_source(args, config)
        mapper = FileMapper(
            args.dist_dir,
            hash_workers=config.hash_workers,
            chunk_size=config.chunk_size,
            show_progress=config.show_progress,
        )

        print(f"🔍 Expected assets: {source.describe()}", file=sys.stderr)
        print(f"📁 Dist directory: {args.dist_dir}", file=sys.stderr)

        expected_map, actual_map = build_file_maps(source, mapper)
        print(
            f"📋 Expected {len(expected_map)} files, found {len(actual_map)} files",
            file=sys.stderr,
        )

        if args.save_hashes:
            save_files_map(actual_map, args.save_hashes)
            print(f"🔐 Saved file hashes to: {args.save_hashes}", file=sys.stderr)

        discrepancies = compare_file_maps(expected_map, actual_map)
    except VerifierError as e:
        print(f"❌ Failed to complete process: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        print(json.dumps(discrepancies.to_dict(), indent=2))
    else:
        log_discrepancies(discrepancies)

    if args.fail_on_mismatch and not discrepancies.is_clean:
        return EXIT_MISMATCH
    return EXIT_OK

