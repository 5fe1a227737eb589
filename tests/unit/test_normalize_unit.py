from __future__ import annotations

import pytest

from cli_harness.normalize import clean_std_output, extract_uuids


pytestmark = pytest.mark.unit

BUILD_ID = "3f2b8c1e-9d4a-4e6b-8f0a-1c2d3e4f5a6b"


def test_uuids_are_replaced_everywhere() -> None:
    text = f"build {BUILD_ID} -> /app/builds/{BUILD_ID.upper()}"
    assert clean_std_output(text) == "build <UUID> -> /app/builds/<UUID>"


def test_failure_glyphs_become_ascii_x() -> None:
    assert clean_std_output("✘ audit failed\n× 2 errors") == "X audit failed\nX 2 errors"


def test_port_word_is_masked() -> None:
    assert clean_std_output("Server listening on port 54321") == "Server listening on port XXXX"


def test_port_suffix_is_masked() -> None:
    assert clean_std_output("open http://localhost:54321/app") == "open http://localhost:XXXX/app"


def test_report_url_uses_fixed_placeholder() -> None:
    text = "Open the report at https://storage.googleapis.com/appspot.com/reports/1570000000-1234.report.html"
    assert clean_std_output(text).endswith("appspot.com/reports/XXXX-XXXX.report.html")


def test_long_numbers_and_fractions_are_masked() -> None:
    assert clean_std_output("took 12345.67ms, 2024 runs, 3 errors") == "took XXXXms, XXXX runs, 3 errors"


@pytest.mark.parametrize(
    "raw",
    [
        f"✘ created {BUILD_ID} on port 8080 at http://localhost:8080/app",
        "appspot.com/reports/1570000000-1234.report.html uploaded in 1234.5ms",
        "----------------------------------------",
        "nothing volatile here",
    ],
)
def test_normalization_is_idempotent(raw: str) -> None:
    once = clean_std_output(raw)
    assert clean_std_output(once) == once


def test_extract_uuids_preserves_order() -> None:
    other = "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"
    assert extract_uuids(f"{BUILD_ID} then {other}") == [BUILD_ID, other]


def test_extract_uuids_without_matches_is_empty() -> None:
    assert extract_uuids("no ids here") == []
