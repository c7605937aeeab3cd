#!/usr/bin/env python3
"""
Compare two saved file maps (as written by ``verify-dist --save-hashes``).

Usage:
    python scripts/compare_hashes.py expected_hashes.json dist_hashes.json

Exits with 0 if hashes match, 2 otherwise, 1 on errors.
"""

import argparse
import sys
from pathlib import Path

from dist_verifier.comparator import compare_file_maps
from dist_verifier.errors import VerifierError
from dist_verifier.reporter import log_discrepancies
from dist_verifier.utils import load_files_map


def main(argv=None) -> int:  # noqa: D401 – simple CLI
    parser = argparse.ArgumentParser(description="Compare two saved file maps")
    parser.add_argument("expected", type=Path, help="Expected {path: hash} JSON file")
    parser.add_argument("actual", type=Path, help="Actual {path: hash} JSON file")
    args = parser.parse_args(argv)

    try:
        expected = load_files_map(args.expected)
        actual = load_files_map(args.actual)
    except VerifierError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    discrepancies = compare_file_maps(expected, actual)
    log_discrepancies(discrepancies)
    return 0 if discrepancies.is_clean else 2


if __name__ == "__main__":
    sys.exit(main())
