import io

from dist_verifier.comparator import Discrepancies, HashMismatch
from dist_verifier.reporter import SUCCESS_LINE, format_discrepancies, log_discrepancies

D1 = "aa" * 32
D2 = "bb" * 32


def test_clean_result_is_a_single_success_line():
    assert format_discrepancies(Discrepancies()) == [SUCCESS_LINE]


def test_only_non_empty_categories_are_listed():
    lines = format_discrepancies(Discrepancies(only_in_expected=("/b.js",)))

    assert lines == ["❌ Missing from dist directory (1):", "  - /b.js"]


def test_full_report():
    discrepancies = Discrepancies(
        only_in_expected=("/b.js",),
        only_in_actual=("/extra.js", "/more.js"),
        hash_mismatch=(HashMismatch("/a.js", D1, D2),),
    )

    assert format_discrepancies(discrepancies) == [
        "❌ Missing from dist directory (1):",
        "  - /b.js",
        "⚠️  Not in expected assets (2):",
        "  - /extra.js",
        "  - /more.js",
        "❌ Hash mismatch (1):",
        "  - /a.js",
        f"    Expected: {D1}",
        f"    Actual:   {D2}",
    ]


def test_log_discrepancies_writes_to_stream():
    out = io.StringIO()

    log_discrepancies(Discrepancies(), stream=out)

    assert out.getvalue() == SUCCESS_LINE + "\n"


def test_log_discrepancies_defaults_to_stdout(capsys):
    log_discrepancies(Discrepancies(only_in_actual=("/extra.js",)))

    assert "/extra.js" in capsys.readouterr().out
