"""
api/routers/presigned.py — presigned netdisk download URLs.

    POST /presigned/download-url   issue a signed 5-minute download link
    POST /presigned/verify-url     check a link issued by this server

Caller credentials travel in the Cookie and Bbsid request headers; Bbsid is
the caller's netdisk group id and gets bound into the signature.
"""
import asyncio
import contextlib
import logging
from typing import Awaitable, Optional, TypeVar

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies.presign import get_issuer, get_settings, get_verifier
from api.handlers import error_body
from netdisk.config import Settings
from netdisk.errors import CredentialsError, ParamError
from netdisk.presign import PresignedUrlIssuer, PresignedUrlVerifier

log = logging.getLogger("netdisk_gateway.api")

router = APIRouter()

# How often an in-flight issuance checks whether its caller is still there.
DISCONNECT_POLL_SECONDS = 0.5

# nginx's "client closed request" status, for access logs.
CLIENT_CLOSED_REQUEST = 499

T = TypeVar("T")


class DownloadUrlBody(BaseModel):
    fileId: Optional[str] = None
    token: Optional[str] = None


class VerifyUrlBody(BaseModel):
    downloadUrl: Optional[str] = None


async def _unless_disconnected(request: Request, work: Awaitable[T]) -> Optional[T]:
    """
    Await `work`, cancelling it if the inbound client goes away first.
    Returns None when cancelled that way.
    """
    task = asyncio.ensure_future(work)
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if done:
            return task.result()
        if await request.is_disconnected():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            log.info("Client disconnected on %s, upstream call abandoned", request.url.path)
            return None


@router.post("/download-url")
async def download_url(
    request: Request,
    body: DownloadUrlBody,
    cookie: Optional[str] = Header(None),
    bbsid: Optional[str] = Header(None),
    issuer: PresignedUrlIssuer = Depends(get_issuer),
    settings: Settings = Depends(get_settings),
):
    """
    Issue a presigned download URL for `fileId` ("<localId>$<upstreamId>").

    The URL points at the netdisk's own direct-download link and carries
    resourceId / expiresAt / scopeId / nonce / signature. It expires after
    5 minutes — the client should download immediately.
    """
    if not cookie or not bbsid:
        raise CredentialsError("Incomplete credentials: both Cookie and Bbsid headers are required.")
    if not body.fileId:
        raise ParamError("fileId must not be empty.")
    if body.token and body.token != settings.mobile_api_token:
        raise CredentialsError("Invalid API token.")

    result = await _unless_disconnected(request, issuer.issue(body.fileId, cookie, bbsid))
    if result is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    return {
        "success": True,
        "data": {
            "downloadUrl": result.download_url,
            "fileName":    result.file_name,
            "expires":     result.expires_at,
            "expiresAt":   result.expires_at_ms,
            "fileSize":    result.file_size,
            "fileType":    result.file_type,
        },
    }


@router.post("/verify-url")
async def verify_url(
    body: VerifyUrlBody,
    verifier: PresignedUrlVerifier = Depends(get_verifier),
):
    """
    Check a presigned URL: parameters present, not expired, signature intact.

    A failed check is answered with 400 and the reason
    ("missing parameters" | "expired" | "signature mismatch").
    """
    if not body.downloadUrl:
        raise ParamError("downloadUrl must not be empty.")

    result = verifier.verify(body.downloadUrl)
    if not result.valid:
        extra = {"expiredAt": result.expires_at} if result.expires_at else {}
        return JSONResponse(
            status_code=400,
            content=error_body(result.reason, "VERIFICATION_FAILED", **extra),
        )

    return {
        "success": True,
        "data": {
            "expiresAt":     result.expires_at,
            "remainingTime": result.remaining_seconds,
        },
    }
