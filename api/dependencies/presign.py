"""
api/dependencies/presign.py

FastAPI lifespan: loads Settings once on startup and builds the presigned-URL
issuer and verifier from them. Both are stored on app.state and reach the
routers via Depends(get_issuer) / Depends(get_verifier).

Usage in a router:
    from api.dependencies.presign import get_verifier

    @router.post("/verify-url")
    async def verify_url(body: VerifyBody, verifier=Depends(get_verifier)):
        result = verifier.verify(body.downloadUrl)
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from netdisk.config import Settings, load_settings
from netdisk.presign import PresignedUrlIssuer, PresignedUrlVerifier
from netdisk.utils import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Read configuration once; the signing key is immutable for the process lifetime."""
    settings = load_settings()
    setup_logging(logging.DEBUG if settings.debug_log else logging.INFO)

    app.state.settings = settings
    app.state.issuer   = PresignedUrlIssuer.from_settings(settings)
    app.state.verifier = PresignedUrlVerifier(settings.signature_key)
    yield


async def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_issuer(request: Request) -> PresignedUrlIssuer:
    """FastAPI dependency — the shared issuer (stateless, safe to share)."""
    return request.app.state.issuer


async def get_verifier(request: Request) -> PresignedUrlVerifier:
    """FastAPI dependency — the shared verifier."""
    return request.app.state.verifier
