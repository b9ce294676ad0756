"""Loading of the optional INI configuration file.

Every key lives in the ``[DEFAULT]`` section and mirrors a command-line
flag::

    [DEFAULT]
    mode = audio
    audio_format = opus
    unicode_filenames = true
    force_ipv4 = false
    retries = 10
    parallel = 2
    export = title_url
    cookies_from_browser = firefox
    output_root = ~/Music/playlists

Values read here are overridden by flags given on the command line.
"""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from playlist_archiver.exceptions import InvalidConfigError

log = logging.getLogger(__name__)

CONFIG_FILE_NAME: str = "config.ini"
APP_DIR_NAME: str = "playlist-archiver"

_STRING_KEYS: tuple[str, ...] = (
    "mode",
    "audio_format",
    "audio_quality",
    "video_container",
    "export",
    "cookies_from_browser",
    "output_root",
)
_BOOL_KEYS: tuple[str, ...] = ("unicode_filenames", "force_ipv4")
_INT_KEYS: tuple[str, ...] = ("retries", "parallel")

KNOWN_KEYS: frozenset[str] = frozenset(_STRING_KEYS + _BOOL_KEYS + _INT_KEYS)


def default_config_path() -> Path:
    """Per-user config location (``%APPDATA%`` or ``$XDG_CONFIG_HOME``)."""
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / APP_DIR_NAME / CONFIG_FILE_NAME


class ConfigFileLoader:
    """Reads one INI file into a dict of option values."""

    def __init__(self, config_file_path: Path) -> None:
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load(self) -> dict[str, Any]:
        """Return the typed values present in the file.

        Keys absent from the file are absent from the result, so the
        caller's defaults stay in force.

        Raises
        ------
        InvalidConfigError
            If the file is missing, unparsable, or holds a value of the
            wrong type.
        """
        if not self.config_file_path.is_file():
            raise InvalidConfigError(
                f"Configuration file not found at '{self.config_file_path}'.",
            )
        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as exc:
            raise InvalidConfigError(f"Error parsing configuration file: {exc}") from exc

        section = self._parser["DEFAULT"]
        for key in section:
            if key not in KNOWN_KEYS:
                log.debug("Ignoring unknown config key '%s'.", key)

        values: dict[str, Any] = {}
        try:
            for key in _STRING_KEYS:
                raw = section.get(key)
                if raw is not None and raw.strip():
                    values[key] = raw.strip()
            for key in _BOOL_KEYS:
                if key in section:
                    values[key] = section.getboolean(key)
            for key in _INT_KEYS:
                if key in section:
                    values[key] = section.getint(key)
        except ValueError as exc:
            raise InvalidConfigError(
                f"Invalid value in {self.config_file_path}: {exc}",
            ) from exc

        log.debug("Loaded %d option(s) from %s", len(values), self.config_file_path)
        return values
