"""
netdisk/netdisk_client.py — Async wrapper around the groupware netdisk API.

Responsibilities
----------------
- Forward the caller's Cookie on every request, together with the browser
  User-Agent and Referer the netdisk gates on.
- Provide one method per netdisk endpoint we need.
- Enforce an explicit timeout and translate transport / HTTP failures into
  UpstreamUnavailableError. No retries — the caller decides.
"""
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from netdisk.config import DEFAULT_DOWNLOAD_API, DEFAULT_REFERER, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from netdisk.errors import UpstreamUnavailableError
from netdisk.utils import redact_cookie

log = logging.getLogger("netdisk_gateway.upstream")

STATUS_PATH = "/screen/note_note/files/status/{file_ref}"


class NetdiskClient:
    """Thin async wrapper around the netdisk REST API, scoped to one caller."""

    def __init__(
        self,
        cookie: str,
        *,
        base_url: str = DEFAULT_DOWNLOAD_API,
        user_agent: str = DEFAULT_USER_AGENT,
        referer: str = DEFAULT_REFERER,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._cookie = cookie
        self._base_url = base_url
        self._user_agent = user_agent
        self._referer = referer
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ─── Context manager ──────────────────────────────────────────────────────

    async def __aenter__(self) -> "NetdiskClient":
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Cookie": self._cookie,
                "User-Agent": self._user_agent,
                "Referer": self._referer,
                "Accept": "application/json, text/plain, */*",
            },
            timeout=self._timeout,
            http2=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_) -> None:
        if self._client:
            await self._client.aclose()

    # ─── Internal request helper ──────────────────────────────────────────────

    async def _post(self, url: str, body: Optional[dict] = None) -> Any:
        """
        POST `url` (relative to the base URL) and return the decoded JSON.

        Raises:
            UpstreamUnavailableError — timeout, connection error, HTTP error
                                       status or a body that isn't JSON
        """
        assert self._client, "NetdiskClient must be used as an async context manager."
        log.debug("POST %s (cookie: %s)", url, redact_cookie(self._cookie))

        try:
            resp = await self._client.post(url, json=body or {})
        except httpx.TimeoutException as exc:
            log.warning("Netdisk timed out after %.1fs on %s", self._timeout, url)
            raise UpstreamUnavailableError(
                "Netdisk did not answer in time.",
                detail={"url": url, "timeout": self._timeout},
            ) from exc
        except httpx.TransportError as exc:
            log.warning("Network error talking to netdisk: %s", exc)
            raise UpstreamUnavailableError(
                "Netdisk is unreachable, check the network connection.",
                detail={"url": url},
            ) from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.is_error:
            upstream_msg = data.get("msg") if isinstance(data, dict) else None
            message = upstream_msg or resp.reason_phrase or "upstream error"
            raise UpstreamUnavailableError(
                f"Netdisk request failed: {message} ({resp.status_code})",
                detail={"url": url, "status": resp.status_code},
            )

        if not isinstance(data, dict):
            raise UpstreamUnavailableError(
                "Netdisk returned a non-JSON response.",
                detail={"url": url, "status": resp.status_code},
            )

        log.debug("Netdisk %s → %s", url, data)
        return data

    # ─── Public netdisk methods ───────────────────────────────────────────────

    async def get_file_status(self, file_ref: str) -> dict:
        """
        Return the status record for an upstream file.

        Shape (fields beyond status/download are optional):
            {"status": true, "download": "https://…", "name": "report.pdf",
             "size": 1024, "filetype": "pdf", "msg": "…"}

        The `download` URL is short-lived and issued by the netdisk itself.
        """
        return await self._post(STATUS_PATH.format(file_ref=quote(file_ref, safe="")))
