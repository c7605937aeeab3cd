"""Three-way comparison of an expected and an actual file map."""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class HashMismatch:
    """A key present on both sides with different digests."""

    path: str
    expected_hash: str
    actual_hash: str


@dataclass(frozen=True)
class Discrepancies:
    """
    Result of comparing two file maps.

    Each sequence keeps the iteration order of the map it was drawn from.
    """

    only_in_expected: Tuple[str, ...] = field(default_factory=tuple)
    only_in_actual: Tuple[str, ...] = field(default_factory=tuple)
    hash_mismatch: Tuple[HashMismatch, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return not (self.only_in_expected or self.only_in_actual or self.hash_mismatch)

    def to_dict(self) -> Dict[str, list]:
        return {
            "only_in_expected": list(self.only_in_expected),
            "only_in_actual": list(self.only_in_actual),
            "hash_mismatch": [
                {
                    "path": m.path,
                    "expected_hash": m.expected_hash,
                    "actual_hash": m.actual_hash,
                }
                for m in self.hash_mismatch
            ],
        }


def compare_file_maps(
    expected: Mapping[str, str], actual: Mapping[str, str]
) -> Discrepancies:
    """
    Compare two ``key -> digest`` maps.

    Digests are compared case-insensitively; reported digests are left as given.

    Args:
        expected (Mapping[str, str]): Manifest or canister side.
        actual (Mapping[str, str]): On-disk side.

    Returns:
        Discrepancies: Keys only in ``expected``, keys only in ``actual`` and
        digest mismatches.
    """
    only_in_expected: List[str] = []
    mismatches: List[HashMismatch] = []

    for path, expected_hash in expected.items():
        actual_hash = actual.get(path)
        if actual_hash is None:
            only_in_expected.append(path)
        elif expected_hash.lower() != actual_hash.lower():
            mismatches.append(HashMismatch(path, expected_hash, actual_hash))

    only_in_actual = [path for path in actual if path not in expected]

    return Discrepancies(
        only_in_expected=tuple(only_in_expected),
        only_in_actual=tuple(only_in_actual),
        hash_mismatch=tuple(mismatches),
    )
