"""
netdisk/signing.py — HMAC-SHA256 signing primitive shared by issuer and verifier.

The payload is serialized as compact JSON with a fixed key order:

    {"resourceId":"99","expiresAt":1700000300000,"scopeId":"grp1","nonce":"…"}

expiresAt is always a JSON integer, so a value rebuilt from a URL query
string serializes byte-for-byte the same as the one that was signed.
"""
import hashlib
import hmac
import json
import time
import uuid
from dataclasses import dataclass
from typing import Callable

Clock = Callable[[], int]
NonceFactory = Callable[[], str]


@dataclass(frozen=True)
class SignaturePayload:
    resource_id: str
    expires_at: int
    scope_id: str
    nonce: str

    def canonical(self) -> bytes:
        ordered = {
            "resourceId": self.resource_id,
            "expiresAt":  self.expires_at,
            "scopeId":    self.scope_id,
            "nonce":      self.nonce,
        }
        return json.dumps(ordered, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sign(payload: SignaturePayload, key: str) -> str:
    """Return the lowercase hex HMAC-SHA256 tag of the payload."""
    return hmac.new(key.encode("utf-8"), payload.canonical(), hashlib.sha256).hexdigest()


def signatures_match(expected: str, supplied: str) -> bool:
    """Constant-time tag comparison. Garbage input is just a mismatch."""
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


# ─── Default time / randomness sources ────────────────────────────────────────

def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_nonce() -> str:
    """UUID4 — drawn from os.urandom, unpredictable."""
    return str(uuid.uuid4())
