"""Heuristic check that an export body is tabular data and not an HTML page.

When the portal session is gone the export endpoint answers with the login
page (often still with a 200), so the body has to be inspected before it is
trusted. This is not a CSV parser: only the first ``SAMPLE_SIZE`` bytes are
looked at.
"""
from __future__ import annotations

SAMPLE_SIZE = 2048
SHORT_BODY_BYTES = 100

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")
CSV_CONTENT_TYPES = ("text/csv", "application/csv", "application/octet-stream", "application/x-csv")
HTML_MARKERS = ("<!doctype", "<html", "<head", "<body", "<meta", "<title", "<script", "<div")
DELIMITERS = (",", ";", "\t", "|")


def check_csv_payload(buffer: bytes, content_type: str | None = "") -> tuple[bool, str | None]:
    """Return ``(is_csv, reason)``; ``reason`` explains a rejection."""

    lowered_type = (content_type or "").lower()

    for html_type in HTML_CONTENT_TYPES:
        if html_type in lowered_type:
            return False, f"content-type indicates HTML: {content_type}"

    sample = buffer[:SAMPLE_SIZE].decode("utf-8", errors="ignore").lower().strip()

    for marker in HTML_MARKERS:
        if marker in sample:
            return False, f"HTML marker found: {marker}"

    has_delimiters = any(delimiter in sample for delimiter in DELIMITERS)
    has_newlines = "\n" in sample or "\r" in sample

    if not has_delimiters and len(buffer) > SHORT_BODY_BYTES:
        return False, "no CSV delimiters found in sample"

    if any(csv_type in lowered_type for csv_type in CSV_CONTENT_TYPES):
        return True, None

    if has_delimiters or has_newlines or len(buffer) < SHORT_BODY_BYTES:
        return True, None
    return False, "payload does not look tabular"


def ensure_csv(buffer: bytes, content_type: str | None = "") -> bool:
    is_csv, _ = check_csv_payload(buffer, content_type)
    return is_csv
