"""
netdisk/config.py — process configuration, read once at startup.

Values come from the environment (optionally seeded from a .env file by
python-dotenv). The resulting Settings object is immutable and handed to
the issuer / verifier at construction — nothing reads os.environ later.

    SIGNATURE_KEY         HMAC secret for presigned URLs
    APP_ENV               "production" refuses to start without SIGNATURE_KEY
    NETDISK_DOWNLOAD_API  upstream base URL
    NETDISK_USER_AGENT    browser UA the upstream gates on
    NETDISK_REFERER       Referer the upstream gates on
    UPSTREAM_TIMEOUT      seconds before an upstream call is abandoned
    MOBILE_API_TOKEN      optional extra token for /presigned/download-url
    ENABLE_DEBUG_LOG      "true" → DEBUG logging incl. upstream bodies
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

log = logging.getLogger("netdisk_gateway.config")

DEFAULT_SIGNATURE_KEY = "default_signature_key"
DEFAULT_DOWNLOAD_API  = "https://noteyd.chaoxing.com"
DEFAULT_REFERER       = "https://chaoxing.com/"
DEFAULT_USER_AGENT    = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/100.0.4896.160 Safari/537.36"
)
DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class Settings:
    signature_key: str
    app_env: str = "development"
    download_api: str = DEFAULT_DOWNLOAD_API
    user_agent: str = DEFAULT_USER_AGENT
    referer: str = DEFAULT_REFERER
    upstream_timeout: float = DEFAULT_TIMEOUT
    mobile_api_token: Optional[str] = None
    debug_log: bool = False


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"UPSTREAM_TIMEOUT must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"UPSTREAM_TIMEOUT must be > 0, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from `env` (defaults to os.environ after loading .env).

    An unset SIGNATURE_KEY falls back to a well-known default and logs a
    warning. With APP_ENV=production that fallback is refused instead.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    app_env = env.get("APP_ENV", "development").strip().lower() or "development"

    key = env.get("SIGNATURE_KEY", "")
    if not key:
        if app_env == "production":
            raise RuntimeError("SIGNATURE_KEY must be set when APP_ENV=production.")
        log.warning(
            "SIGNATURE_KEY is not set; presigned URLs are signed with the "
            "built-in default key. Set SIGNATURE_KEY before deploying."
        )
        key = DEFAULT_SIGNATURE_KEY

    return Settings(
        signature_key=key,
        app_env=app_env,
        download_api=env.get("NETDISK_DOWNLOAD_API", DEFAULT_DOWNLOAD_API).rstrip("/"),
        user_agent=env.get("NETDISK_USER_AGENT", DEFAULT_USER_AGENT),
        referer=env.get("NETDISK_REFERER", DEFAULT_REFERER),
        upstream_timeout=_parse_timeout(env.get("UPSTREAM_TIMEOUT", str(DEFAULT_TIMEOUT))),
        mobile_api_token=env.get("MOBILE_API_TOKEN") or None,
        debug_log=_parse_bool(env.get("ENABLE_DEBUG_LOG", "false")),
    )
