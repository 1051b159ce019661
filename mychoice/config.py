"""
Runtime configuration for Make Your Choice.

Defaults are platform-aware; every value can be overridden through a
MYCHOICE_* environment variable so tests and power users can point the app at
a scratch hosts file or a mirrored range feed.
"""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

APP_NAME = "MakeYourChoice"
APP_VERSION = "2.1.0"
DEFAULT_FEED_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"
DEFAULT_FEED_TIMEOUT = 15.0
DEFAULT_HELP_URL = "https://discord.gg/xEMyAA8gn8"


def default_hosts_path() -> Path:
    if platform.system().lower() == "windows":
        return Path(r"C:\Windows\System32\drivers\etc\hosts")
    # macOS/Linux
    return Path("/etc/hosts")


def _float_env(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", key, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", key, raw)
        return default
    return value


@dataclass(frozen=True)
class AppConfig:
    hosts_path: Path
    feed_url: str = DEFAULT_FEED_URL
    feed_timeout: float = DEFAULT_FEED_TIMEOUT
    help_url: str = DEFAULT_HELP_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        hosts = env.get("MYCHOICE_HOSTS_PATH")
        return cls(
            hosts_path=Path(hosts) if hosts else default_hosts_path(),
            feed_url=env.get("MYCHOICE_FEED_URL") or DEFAULT_FEED_URL,
            feed_timeout=_float_env(env, "MYCHOICE_FEED_TIMEOUT", DEFAULT_FEED_TIMEOUT),
            help_url=env.get("MYCHOICE_HELP_URL") or DEFAULT_HELP_URL,
            log_level=(env.get("MYCHOICE_LOG_LEVEL") or "INFO").upper(),
        )
