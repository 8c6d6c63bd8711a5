"""Tests for utils.helpers module."""

import pytest

from tokenpipe.utils.helpers import format_duration, header_value, resolve_url


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (None, "unknown"),
            (59, "59s"),
            (65, "1m 5s"),
            (3605, "1h 0m 5s"),
            (90061, "1d 1h 1m 1s"),
            (12.9, "12s"),
        ],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestResolveUrl:
    def test_relative_target_joined(self):
        assert resolve_url("https://api.example.com", "/items") == "https://api.example.com/items"
        assert resolve_url("https://api.example.com/", "items") == "https://api.example.com/items"

    def test_absolute_target_passes_through(self):
        assert resolve_url("https://api.example.com", "http://other.example.com/x") == "http://other.example.com/x"

    def test_without_base_url(self):
        assert resolve_url(None, "/items") == "/items"


class TestHeaderValue:
    def test_case_insensitive(self):
        headers = {"X-CSRF-Token": "C1", "Content-Type": "application/json"}

        assert header_value(headers, "x-csrf-token") == "C1"
        assert header_value(headers, "Authorization") is None
