"""Configuration objects for the uTools Python SDK."""

from __future__ import annotations

import configparser
import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import MissingAPIKeyError

logger = logging.getLogger("utools_sdk.config")

DEFAULT_BASE_URL = "https://fapi.uk"
ALT_BASE_URL = "https://l2.fapi.uk"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RATE_LIMIT = 5.0
DEFAULT_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_BACKOFF_SECONDS = 30.0
DEFAULT_CONFIG_PATH = "config.ini"
INI_SECTION = "xcatch"
ENV_PREFIX = "XCATCH_"


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    auth_token: Optional[str] = None
    ct0: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    rate_limit: float = DEFAULT_RATE_LIMIT
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS
    user_agent: str = "utools-sdk-python/0.1.0"

    def validated(self) -> "ClientConfig":
        """Return a copy with invalid numeric fields replaced by defaults.

        Raises ``MissingAPIKeyError`` when no API key is set; this is the only
        fatal condition.
        """
        if not self.api_key:
            raise MissingAPIKeyError()
        return dataclasses.replace(
            self,
            base_url=(self.base_url or DEFAULT_BASE_URL).rstrip("/"),
            timeout=self.timeout if self.timeout > 0 else DEFAULT_TIMEOUT,
            max_retries=self.max_retries if self.max_retries >= 0 else DEFAULT_MAX_RETRIES,
            rate_limit=self.rate_limit if self.rate_limit > 0 else DEFAULT_RATE_LIMIT,
            backoff_seconds=self.backoff_seconds if self.backoff_seconds >= 0 else DEFAULT_BACKOFF_SECONDS,
            max_backoff_seconds=(
                self.max_backoff_seconds if self.max_backoff_seconds >= 0 else DEFAULT_MAX_BACKOFF_SECONDS
            ),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        return _apply_overrides(cls(api_key=""), _env_values(os.environ if environ is None else environ))


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """Load settings from an INI file, then let ``XCATCH_*`` variables override them.

    The INI file uses an ``[xcatch]`` section with the keys ``api_key``,
    ``auth_token``, ``ct0``, ``base_url``, ``timeout_sec``, ``max_retries`` and
    ``rate_limit``. A missing file is not an error. The result is not
    validated; the client does that once at construction.
    """
    config = ClientConfig(api_key="")
    ini_path = Path(path or DEFAULT_CONFIG_PATH)
    if ini_path.exists():
        parser = configparser.ConfigParser(interpolation=None)
        try:
            with ini_path.open(encoding="utf-8") as fh:
                parser.read_file(fh)
        except (configparser.Error, OSError, UnicodeDecodeError) as exc:
            logger.warning("failed to parse %s, falling back to defaults/env: %s", ini_path, exc)
        else:
            if parser.has_section(INI_SECTION):
                config = _apply_overrides(config, dict(parser.items(INI_SECTION)))
    return _apply_overrides(config, _env_values(os.environ if environ is None else environ))


def _env_values(environ: Mapping[str, str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith(ENV_PREFIX) and value:
            values[key[len(ENV_PREFIX):].lower()] = value
    return values


def _apply_overrides(config: ClientConfig, values: Mapping[str, str]) -> ClientConfig:
    changes: dict[str, object] = {}
    for field in ("api_key", "auth_token", "ct0"):
        if values.get(field):
            changes[field] = values[field].strip()
    if values.get("base_url", "").strip():
        changes["base_url"] = values["base_url"].strip()

    timeout = _parse_number(values.get("timeout_sec"), int)
    if timeout is not None and timeout > 0:
        changes["timeout"] = float(timeout)
    retries = _parse_number(values.get("max_retries"), int)
    if retries is not None and retries >= 0:
        changes["max_retries"] = retries
    rate = _parse_number(values.get("rate_limit"), float)
    if rate is not None and rate > 0:
        changes["rate_limit"] = rate

    return dataclasses.replace(config, **changes) if changes else config


def _parse_number(raw: Optional[str], kind: type) -> Optional[float]:
    if raw is None:
        return None
    try:
        return kind(raw.strip())
    except ValueError:
        return None


__all__ = ["ALT_BASE_URL", "ClientConfig", "DEFAULT_BASE_URL", "load_config"]
