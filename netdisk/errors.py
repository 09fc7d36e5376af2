"""
netdisk/errors.py — exception taxonomy for the gateway core.

Each error carries the HTTP status the API layer should answer with and a
stable machine-readable code; the mapping itself lives in api/handlers.py.

A failed presigned-URL verification is NOT an exception — it is a normal
negative VerificationResult (see netdisk/presign.py).
"""
from typing import Optional


class NetdiskError(Exception):
    """Base exception for all gateway errors."""

    code = "SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[dict] = None) -> None:
        self.message = message
        self.detail = detail or {}
        super().__init__(self.message)


class ParamError(NetdiskError):
    """A required field is missing or empty — the caller fixes the input."""

    code = "PARAM_ERROR"
    status_code = 400


class FormatError(NetdiskError):
    """Resource identifier is not in "<localId>$<upstreamId>" form."""

    code = "FORMAT_ERROR"
    status_code = 400


class UpstreamError(NetdiskError):
    """The netdisk rejected the request or returned unusable data."""

    code = "UPSTREAM_ERROR"
    status_code = 400


class UpstreamUnavailableError(UpstreamError):
    """Timeout, connection failure or a non-2xx / non-JSON upstream answer."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 502


class CredentialsError(NetdiskError):
    """Cookie / Bbsid headers or the API token are missing or wrong."""

    code = "AUTH_ERROR"
    status_code = 401
