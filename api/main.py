"""
api/main.py — FastAPI application entry point.

Run locally:
    uvicorn api.main:app --reload

Architecture:
  - lifespan: loads Settings, builds the presigned-URL issuer / verifier
  - Routes receive them via Depends(get_issuer) / Depends(get_verifier)
  - Business logic stays in netdisk/ (not here)
"""
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI

from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from api.dependencies.presign import lifespan
from api.handlers import register_exception_handlers
from api.routers import presigned

app = FastAPI(
    title="Netdisk Gateway API",
    description=(
        "Simplified REST surface over the groupware netdisk. "
        "Issues and verifies short-lived presigned download URLs."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# Trust headers like X-Forwarded-Proto and X-Forwarded-For injected by Nginx
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

register_exception_handlers(app)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(presigned.router, prefix="/presigned", tags=["Presigned"])


# ── Health check ─────────────────────────────────────────────────────────────
@app.get("/health", tags=["Meta"])
async def health() -> dict:
    """Liveness probe — returns 200 if the API process is alive."""
    return {"status": "ok"}
