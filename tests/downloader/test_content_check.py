import pytest

from catalog_sync.downloader.content_check import check_csv_payload, ensure_csv

HTML_PAGE = b"<!DOCTYPE html><html><body>x</body></html>"


def test_csv_body_with_csv_content_type_is_accepted():
    assert ensure_csv(b"id,name,price\n1,Product,100", "text/csv") is True


def test_html_body_with_html_content_type_is_rejected():
    assert ensure_csv(HTML_PAGE, "text/html") is False


def test_html_marker_overrides_csv_content_type():
    is_csv, reason = check_csv_payload(HTML_PAGE, "text/csv")

    assert is_csv is False
    assert reason == "HTML marker found: <!doctype"


def test_html_content_type_rejects_valid_csv_body():
    is_csv, reason = check_csv_payload(b"id,name,price\n1,Product,100", "text/html; charset=utf-8")

    assert is_csv is False
    assert "content-type indicates HTML" in reason


def test_short_body_without_delimiters_is_accepted():
    assert ensure_csv(b"a" * 50, "") is True
    assert ensure_csv(b"a" * 50, None) is True


def test_long_body_without_delimiters_is_rejected():
    is_csv, reason = check_csv_payload(b"a" * 5000, "")

    assert is_csv is False
    assert reason == "no CSV delimiters found in sample"


@pytest.mark.parametrize(
    "body",
    [
        b"sku;descrizione;prezzo\r\nA1;Vite;0,10\r\n",
        b"sku\tname\nA1\tscrew\n",
        b"sku|name\nA1|screw\n",
    ],
)
def test_alternative_delimiters_without_content_type_are_accepted(body):
    assert ensure_csv(body) is True


def test_only_sample_is_inspected_for_markers():
    body = b"id,name\n" + b"1,x\n" * 1000 + b"<div>footer</div>"

    assert ensure_csv(body, "text/csv") is True


def test_marker_check_is_case_insensitive():
    assert ensure_csv(b"<HTML><BODY>Login</BODY></HTML>", "application/octet-stream") is False
