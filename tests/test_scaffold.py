"""Smoke tests for package wiring.

These tests prove that:
* The CLI entry point is importable and callable.
* The exception hierarchy is correctly structured.
* Version is accessible.
* Exit codes are defined.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from playlist_archiver import __version__
from playlist_archiver.cli import exit_codes
from playlist_archiver.cli.app import main
from playlist_archiver.exceptions import (
    DownloadFailedError,
    EnvironmentError,
    FfmpegNotFoundError,
    InvalidConfigError,
    InvalidURLError,
    ManifestError,
    PlaylistArchiverError,
    ResolutionError,
    append_ytdlp_upgrade_suggestion,
)


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_string(self) -> None:
        assert isinstance(__version__, str)

    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class",
        [
            InvalidURLError,
            InvalidConfigError,
            ResolutionError,
            ManifestError,
            DownloadFailedError,
            EnvironmentError,
            FfmpegNotFoundError,
        ],
    )
    def test_all_exceptions_inherit_from_base(
        self, exc_class: type[PlaylistArchiverError]
    ) -> None:
        assert issubclass(exc_class, PlaylistArchiverError)

    def test_ffmpeg_missing_is_environment_error(self) -> None:
        assert issubclass(FfmpegNotFoundError, EnvironmentError)

    def test_hint_is_stored(self) -> None:
        err = PlaylistArchiverError("boom", hint="try this")
        assert str(err) == "boom"
        assert err.hint == "try this"

    def test_hint_defaults_to_none(self) -> None:
        assert PlaylistArchiverError("boom").hint is None

    def test_upgrade_suggestion_appended_once(self) -> None:
        once = append_ytdlp_upgrade_suggestion("Check the URL.")
        twice = append_ytdlp_upgrade_suggestion(once)
        assert once == twice
        assert once.startswith("Check the URL.")
        assert "pip install --upgrade yt-dlp" in once


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_values(self) -> None:
        assert exit_codes.SUCCESS == 0
        assert exit_codes.INPUT_ERROR == 1
        assert exit_codes.UNEXPECTED_ERROR == 2
        assert exit_codes.KEYBOARD_INTERRUPT == 130


# ---------------------------------------------------------------------------
# CLI routing
# ---------------------------------------------------------------------------

class TestCLIRouting:
    def test_no_args_returns_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = main([])
        assert code == exit_codes.SUCCESS
        assert "playlist-archiver" in capsys.readouterr().out

    def test_version_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    @patch("playlist_archiver.cli.doctor.run_doctor", return_value=exit_codes.SUCCESS)
    def test_doctor_returns_success(self, _mock_doc: object) -> None:
        assert main(["doctor"]) == exit_codes.SUCCESS
