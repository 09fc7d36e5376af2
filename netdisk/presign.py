"""
netdisk/presign.py — Presigned download URLs on top of netdisk direct links.

Flow (issue)
------------
1. Split "<localId>$<upstreamId>" — reject early, no network call.
2. Ask the netdisk for the file status (one POST, caller's cookie).
3. expiresAt = now + 5 min, fresh nonce, HMAC-SHA256 over the payload.
4. Append resourceId / expiresAt / scopeId / nonce / signature to the
   netdisk's own direct-download URL.

Flow (verify)
-------------
Pure function of (URL, secret, now): re-derive the payload from the query
string, check expiry, recompute the tag, compare in constant time. There is
no revocation store; a URL stays usable until it expires.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from netdisk.config import Settings
from netdisk.errors import FormatError, ParamError, UpstreamError
from netdisk.netdisk_client import NetdiskClient
from netdisk.signing import Clock, NonceFactory, SignaturePayload, new_nonce, now_ms, sign, signatures_match
from netdisk.utils import decode_filename, iso_from_millis

log = logging.getLogger("netdisk_gateway.presign")

RESOURCE_SEPARATOR = "$"
URL_TTL_MS = 5 * 60 * 1000

REASON_MISSING = "missing parameters"
REASON_EXPIRED = "expired"
REASON_MISMATCH = "signature mismatch"

_REQUIRED_PARAMS = ("resourceId", "expiresAt", "signature", "nonce", "scopeId")

# Issued values are canonical epoch-ms integers (no sign, no leading zero);
# anything else is forged.
_EXPIRES_RE = re.compile(r"[1-9][0-9]{0,13}")

ClientFactory = Callable[[str], NetdiskClient]


@dataclass(frozen=True)
class PresignedDownload:
    download_url: str
    file_name: str
    expires_at: str
    expires_at_ms: int
    file_size: Optional[int] = None
    file_type: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    expires_at: Optional[str] = None
    remaining_seconds: Optional[int] = None
    reason: Optional[str] = None


def split_resource_id(resource_id: str) -> str:
    """
    Return the upstream file reference from "<localId>$<upstreamId>".

    Raises FormatError when the separator is absent or the upstream part
    is empty.
    """
    parts = resource_id.split(RESOURCE_SEPARATOR)
    if len(parts) < 2 or not parts[1]:
        raise FormatError(
            "resourceId must be in <localId>$<upstreamId> form.",
            detail={"resourceId": resource_id},
        )
    return parts[1]


def append_query(url: str, params: dict) -> str:
    """Append params to url with '&' or '?' depending on its existing query."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


# ─── Issuer ───────────────────────────────────────────────────────────────────

class PresignedUrlIssuer:
    """Wraps netdisk direct-download links into signed, 5-minute URLs."""

    def __init__(
        self,
        signing_key: str,
        client_factory: ClientFactory,
        *,
        clock: Clock = now_ms,
        nonce_factory: NonceFactory = new_nonce,
    ) -> None:
        self._key = signing_key
        self._client_factory = client_factory
        self._clock = clock
        self._nonce_factory = nonce_factory

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "PresignedUrlIssuer":
        def factory(cookie: str) -> NetdiskClient:
            return NetdiskClient(
                cookie,
                base_url=settings.download_api,
                user_agent=settings.user_agent,
                referer=settings.referer,
                timeout=settings.upstream_timeout,
            )

        return cls(settings.signature_key, factory, **kwargs)

    async def issue(self, resource_id: str, caller_cookie: str, scope_id: str) -> PresignedDownload:
        """
        Issue a presigned download URL for `resource_id`.

        `caller_cookie` / `scope_id` are the caller's delegated netdisk
        credentials. They are checked for presence only; scope_id is bound
        into the signature as given.

        Raises:
            ParamError               — empty resource id, cookie or scope id
            FormatError              — resource id lacks the '$' separator
            UpstreamError            — netdisk says no / gives no download link
            UpstreamUnavailableError — timeout, network or HTTP failure
        """
        if not resource_id:
            raise ParamError("resourceId must not be empty.")
        if not caller_cookie or not scope_id:
            raise ParamError("Cookie and scopeId are both required.")

        file_ref = split_resource_id(resource_id)

        async with self._client_factory(caller_cookie) as client:
            status = await client.get_file_status(file_ref)

        if not status.get("status") or not status.get("download"):
            message = status.get("msg") or "failed to obtain download link"
            raise UpstreamError(message, detail={"fileRef": file_ref})

        expires_at = self._clock() + URL_TTL_MS
        payload = SignaturePayload(
            resource_id=file_ref,
            expires_at=expires_at,
            scope_id=scope_id,
            nonce=self._nonce_factory(),
        )
        signature = sign(payload, self._key)

        download_url = append_query(status["download"], {
            "resourceId": payload.resource_id,
            "expiresAt":  payload.expires_at,
            "scopeId":    payload.scope_id,
            "nonce":      payload.nonce,
            "signature":  signature,
        })

        file_name = decode_filename(status.get("name") or f"file_{file_ref}")
        log.info("[PRESIGN] %s (scope %s) → expires %s", file_ref, scope_id, iso_from_millis(expires_at))

        return PresignedDownload(
            download_url=download_url,
            file_name=file_name,
            expires_at=iso_from_millis(expires_at),
            expires_at_ms=expires_at,
            file_size=status.get("size"),
            file_type=status.get("filetype"),
        )


# ─── Verifier ─────────────────────────────────────────────────────────────────

class PresignedUrlVerifier:
    """Stateless check of a URL produced by PresignedUrlIssuer."""

    def __init__(self, signing_key: str, *, clock: Clock = now_ms) -> None:
        self._key = signing_key
        self._clock = clock

    def verify(self, presigned_url: str) -> VerificationResult:
        # Last occurrence wins: our parameters follow the netdisk's own.
        try:
            params = dict(parse_qsl(urlsplit(presigned_url).query))
        except ValueError:
            return VerificationResult(valid=False, reason=REASON_MISSING)

        if any(not params.get(name) for name in _REQUIRED_PARAMS):
            return VerificationResult(valid=False, reason=REASON_MISSING)

        if not _EXPIRES_RE.fullmatch(params["expiresAt"]):
            return VerificationResult(valid=False, reason=REASON_MISMATCH)
        expires_at = int(params["expiresAt"])

        now = self._clock()
        if now > expires_at:
            return VerificationResult(
                valid=False,
                expires_at=iso_from_millis(expires_at),
                reason=REASON_EXPIRED,
            )

        payload = SignaturePayload(
            resource_id=params["resourceId"],
            expires_at=expires_at,
            scope_id=params["scopeId"],
            nonce=params["nonce"],
        )
        if not signatures_match(sign(payload, self._key), params["signature"]):
            log.info("[VERIFY] signature mismatch for %s", params["resourceId"])
            return VerificationResult(valid=False, reason=REASON_MISMATCH)

        return VerificationResult(
            valid=True,
            expires_at=iso_from_millis(expires_at),
            remaining_seconds=(expires_at - now) // 1000,
        )
