# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Settings of the client: a TOML file, environment variables and logging."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Mapping

import platformdirs

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib
import tomlkit

from artfolio import __version__
from artfolio.misc_utils import local_now_to_filename_string


log = logging.getLogger("client")
logdir = platformdirs.user_log_path("artfolio", "Artfolio")
cfgdir = platformdirs.user_config_path("artfolio", "Artfolio")
cfgfile = cfgdir / "artfolioConfig.toml"

# environment variable: settings key
Environment_Overrides = {
    "ARTFOLIO_SERVER": "server",
    "ARTFOLIO_API_KEY": "api_key",
    "ARTFOLIO_TOKEN": "token",
    "ARTFOLIO_USER": "user",
}


def default_settings() -> dict[str, Any]:
    return {
        "server": "",
        "user": "",
        "LogLevel": "Info",
        "LogToFile": False,
        "PlaybackSpeed": 1,
        "AnnotationColor": "#FF4444",
    }


def read_settings(path: Path | None = None) -> dict[str, Any]:
    """Read the settings file, filling in defaults for anything missing."""
    path = path or cfgfile
    settings = default_settings()
    if path.exists():
        # too early to log: log.info("Loading config file %s", path)
        with open(path, "rb") as f:
            settings.update(tomllib.load(f))
    return settings


def apply_environment(
    settings: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Environment variables win over the settings file."""
    if environ is None:
        environ = os.environ
    for var, key in Environment_Overrides.items():
        if environ.get(var):
            settings[key] = environ[var]
    return settings


def save_settings(settings: dict[str, Any], path: Path | None = None) -> None:
    """Write the settings file, but never the secrets from the environment."""
    path = path or cfgfile
    keep = {k: v for k, v in settings.items() if k not in ("api_key", "token")}
    log.info("Saving config file %s", path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as fh:
            tomlkit.dump(keep, fh)
    except OSError as e:
        log.warning("Cannot write config file %s, settings not saved: %s", path, e)


def configure_logging(settings: dict[str, Any]) -> None:
    kwargs = {}
    if settings.get("LogToFile"):
        logfile = Path(f"artfolio-{local_now_to_filename_string()}.log")
        try:
            logdir.mkdir(parents=True, exist_ok=True)
            logfile = logdir / logfile
        except PermissionError:
            pass
        kwargs = {"filename": logfile}
    logging.basicConfig(
        format="%(asctime)s %(levelname)5s:%(name)s\t%(message)s",
        datefmt="%b%d %H:%M:%S %Z",
        **kwargs,
    )
    # Default to INFO log level
    logging.getLogger().setLevel(settings.get("LogLevel", "Info").upper())
    log.info("Artfolio Client %s", __version__)
