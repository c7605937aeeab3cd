"""Console rendering of comparison results."""

import sys
from typing import List, TextIO

from .comparator import Discrepancies

SUCCESS_LINE = "✅ Success: All files match as expected."


def format_discrepancies(discrepancies: Discrepancies) -> List[str]:
    """
    Render discrepancies as report lines.

    Args:
        discrepancies (Discrepancies): Comparison result.

    Returns:
        List[str]: Lines without trailing newlines.
    """
    if discrepancies.is_clean:
        return [SUCCESS_LINE]

    lines: List[str] = []

    if discrepancies.only_in_expected:
        lines.append(
            f"❌ Missing from dist directory ({len(discrepancies.only_in_expected)}):"
        )
        lines.extend(f"  - {path}" for path in discrepancies.only_in_expected)

    if discrepancies.only_in_actual:
        lines.append(
            f"⚠️  Not in expected assets ({len(discrepancies.only_in_actual)}):"
        )
        lines.extend(f"  - {path}" for path in discrepancies.only_in_actual)

    if discrepancies.hash_mismatch:
        lines.append(f"❌ Hash mismatch ({len(discrepancies.hash_mismatch)}):")
        for mismatch in discrepancies.hash_mismatch:
            lines.append(f"  - {mismatch.path}")
            lines.append(f"    Expected: {mismatch.expected_hash}")
            lines.append(f"    Actual:   {mismatch.actual_hash}")

    return lines


def log_discrepancies(discrepancies: Discrepancies, stream: TextIO | None = None) -> None:
    """Print the report for ``discrepancies`` to ``stream`` (stdout by default)."""
    out = stream or sys.stdout
    for line in format_discrepancies(discrepancies):
        print(line, file=out)
