from __future__ import annotations

import re


UUID_RE = re.compile(r"[0-9a-f-]{36}", re.IGNORECASE)
PORT_SUFFIX_RE = re.compile(r":\d{4,6}")
PORT_WORD_RE = re.compile(r"port \d{4,6}")
REPORT_URL_RE = re.compile(r"appspot.com/reports/[0-9-]+.report.html")
LONG_NUMBER_RE = re.compile(r"\d{4,}(\.\d+)?")


def extract_uuids(text: str) -> list[str]:
    """Return every UUID-shaped substring of `text`, in order of appearance."""
    return UUID_RE.findall(text)


def clean_std_output(output: str) -> str:
    """
    Replace volatile values in CLI output with stable placeholders.

    Status glyphs become `X`, UUIDs become `<UUID>`, ports and report ids are
    masked, and any remaining run of four or more digits (timestamps, sizes,
    counts) becomes `XXXX`. Applying it twice yields the same text.
    """
    output = output.replace("✘", "X").replace("×", "X")
    output = UUID_RE.sub("<UUID>", output)
    output = PORT_SUFFIX_RE.sub(":XXXX", output)
    output = PORT_WORD_RE.sub("port XXXX", output, count=1)
    output = REPORT_URL_RE.sub("appspot.com/reports/XXXX-XXXX.report.html", output, count=1)
    return LONG_NUMBER_RE.sub("XXXX", output)
