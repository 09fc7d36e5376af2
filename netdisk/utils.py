"""
netdisk/utils.py — shared helpers: logging, filename decoding, timestamps.
"""
import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import unquote

from rich.logging import RichHandler
from rich.console import Console

console = Console()


# ─── Logging ──────────────────────────────────────────────────────────────────

def setup_logging(level: int = logging.INFO) -> None:
    """Configure Rich-based logging for the whole application."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


log = logging.getLogger("netdisk_gateway")


def redact_cookie(cookie: str) -> str:
    """
    Keep cookie names, hide values — safe to put in a log line.

        "uid=42; token=abc" → "uid=***; token=***"
    """
    parts = []
    for chunk in cookie.split(";"):
        name = chunk.split("=", 1)[0].strip()
        if name:
            parts.append(f"{name}=***")
    return "; ".join(parts)


# ─── Filename / time helpers ──────────────────────────────────────────────────

def decode_filename(name: str) -> str:
    """
    The netdisk sometimes returns percent-encoded names ("%E6%8A%A5%E5%91%8A.pdf").
    Decode those; anything that doesn't decode cleanly is returned as-is.
    """
    if "%" not in name:
        return name
    try:
        return unquote(name, errors="strict")
    except UnicodeDecodeError:
        log.warning("Could not decode file name %r, keeping it verbatim", name)
        return name


def iso_from_millis(epoch_ms: int) -> str:
    """
    Epoch milliseconds → ISO-8601 UTC string with millisecond precision.

    Example:
        iso_from_millis(0) → "1970-01-01T00:00:00.000Z"
    """
    seconds, millis = divmod(epoch_ms, 1000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(milliseconds=millis)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
