"""Tests for log sanitizers"""
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging


def test_id_is_escaped_and_truncated():
    assert sanitize_id_for_logging("ab\ncd\x00efghij") == "ab\\ncdef"


def test_missing_values():
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_string_for_logging("") == "N/A"


def test_long_message_is_truncated():
    result = sanitize_string_for_logging("row-level security\r\n" + "x" * 100, max_length=20)

    assert "\r" not in result and "\n" not in result
    assert result.startswith("row-level security\\r")


def test_logger_is_cached():
    assert get_logger("storefront.cart") is get_logger("storefront.cart")
