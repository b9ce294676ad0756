"""Tests for safe-name derivation (utils/naming.py)."""

from __future__ import annotations

import re

import pytest

from playlist_archiver.utils.naming import fallback_name, safe_name_for, sanitize_name

SAFE = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")

TITLES = [
    "Lo-Fi Beats: Vol. 2!!",
    "  leading and trailing  ",
    "ALL CAPS",
    "already_safe_name",
    "Ünïcödé Mix — 2024",
    "tabs\tand\nnewlines",
    "a__b--c  d",
    "123",
    "x",
]


class TestSanitizeName:
    def test_example(self) -> None:
        assert sanitize_name("Lo-Fi Beats: Vol. 2!!") == "lo_fi_beats_vol_2"

    @pytest.mark.parametrize("title", TITLES)
    def test_output_shape(self, title: str) -> None:
        result = sanitize_name(title)
        assert SAFE.match(result)
        assert result == result.lower()

    @pytest.mark.parametrize("title", TITLES)
    def test_idempotent(self, title: str) -> None:
        once = sanitize_name(title)
        assert sanitize_name(once) == once

    @pytest.mark.parametrize("title", ["", "   ", "!!!", "—", "日本語"])
    def test_nothing_alphanumeric_gives_empty(self, title: str) -> None:
        assert sanitize_name(title) == ""


class TestFallbackName:
    def test_uses_prefix_and_clock(self) -> None:
        name = fallback_name("playlist", clock=lambda: 1_700_000_000.9)
        assert name.startswith("playlist_1700000000_")
        assert SAFE.match(name)

    def test_same_second_never_collides(self) -> None:
        names = {fallback_name(clock=lambda: 42.0) for _ in range(50)}
        assert len(names) == 50

    def test_unsafe_prefix_is_sanitized(self) -> None:
        name = fallback_name("My Prefix!", clock=lambda: 1.0)
        assert name.startswith("my_prefix_1_")


class TestSafeNameFor:
    @pytest.mark.parametrize("title", TITLES + ["", "!!!"])
    def test_always_non_empty_and_safe(self, title: str) -> None:
        result = safe_name_for(title)
        assert result
        assert SAFE.match(result)
        assert sanitize_name(result) == result

    def test_keeps_usable_title(self) -> None:
        assert safe_name_for("Road Trip") == "road_trip"
