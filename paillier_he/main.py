"""
Demo HTTP front end for the Paillier engine.

There is no authentication: any caller can generate, use, decrypt with and
delete keys. Run it only on a trusted network. The key store is capped at
``PAILLIER_MAX_KEYS`` entries.
"""

import logging

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from paillier_he import __version__, config
from paillier_he.crypto.errors import (
    NotInvertible,
    PaillierError,
    PrimeSelectionExhausted,
    RandomnessError,
)
from paillier_he.crypto.keys import PrivateKey, generate_key
from paillier_he.crypto.paillier import add, aggregate, decrypt, encrypt
from paillier_he.keystore import KeyNotFound, KeyStore, KeyStoreFull

logger = logging.getLogger(__name__)

# n^2 of a 4096-bit key stays below the default int/str conversion limit.
MAX_KEY_BITS = 4096
DECIMAL = r"^[0-9]+$"
MAX_DIGITS = 2500


app = FastAPI(
    title="Paillier API",
    version=__version__,
)

# ── Security: CORS ───────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
)


# ── Security: HTTP headers ───────────────────────────────────
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cache-Control"] = "no-store"
    return response


_KEYSTORE = KeyStore()


def get_keystore() -> KeyStore:
    return _KEYSTORE


class KeyRequest(BaseModel):
    bits: int = Field(default=config.DEFAULT_KEY_BITS, ge=config.MIN_KEY_BITS, le=MAX_KEY_BITS, multiple_of=2)
    generator: str = Field(default=config.DEFAULT_GENERATOR, pattern="^(simple|random)$")


class EncryptRequest(BaseModel):
    plaintext: str = Field(min_length=1, max_length=MAX_DIGITS, pattern=DECIMAL)


class AddRequest(BaseModel):
    c1: str = Field(min_length=1, max_length=MAX_DIGITS, pattern=DECIMAL)
    c2: str = Field(min_length=1, max_length=MAX_DIGITS, pattern=DECIMAL)


class AggregateRequest(BaseModel):
    ciphertexts: list[str] = Field(default_factory=list, max_length=10_000)


class DecryptRequest(BaseModel):
    ciphertext: str = Field(min_length=1, max_length=MAX_DIGITS, pattern=DECIMAL)


def _http_error(exc: PaillierError) -> HTTPException:
    if isinstance(exc, PrimeSelectionExhausted):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, (NotInvertible, RandomnessError)):
        return HTTPException(status_code=500, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _lookup(store: KeyStore, key_id: str) -> PrivateKey:
    try:
        return store.get(key_id)
    except KeyNotFound:
        raise HTTPException(status_code=404, detail="unknown key") from None


def _public_view(key_id: str, priv: PrivateKey) -> dict:
    pub = priv.public_key
    return {"key_id": key_id, "n": str(pub.n), "g": str(pub.g), "bits": pub.bits}


@app.get("/health")
async def health(store: KeyStore = Depends(get_keystore)) -> dict:
    """Liveness probe; also reports how many keys are held in memory."""
    return {"status": "ok", "keys": len(store)}


@app.post("/keys", status_code=status.HTTP_201_CREATED)
async def create_key(payload: KeyRequest, store: KeyStore = Depends(get_keystore)):
    """Generate a fresh key pair and keep the private half in memory."""
    if store.is_full():
        raise HTTPException(status_code=503, detail="key store is full")
    try:
        priv = await run_in_threadpool(generate_key, None, payload.bits, generator=payload.generator)
    except PaillierError as exc:
        raise _http_error(exc) from exc

    try:
        key_id = store.add(priv)
    except KeyStoreFull as exc:
        raise HTTPException(status_code=503, detail="key store is full") from exc
    logger.info("stored %d-bit key %s", priv.public_key.bits, key_id)
    return _public_view(key_id, priv)


@app.get("/keys/{key_id}")
async def get_key(key_id: str, store: KeyStore = Depends(get_keystore)):
    return _public_view(key_id, _lookup(store, key_id))


@app.delete("/keys/{key_id}")
async def delete_key(key_id: str, store: KeyStore = Depends(get_keystore)):
    try:
        store.delete(key_id)
    except KeyNotFound:
        raise HTTPException(status_code=404, detail="unknown key") from None
    return {"status": "deleted", "key_id": key_id}


@app.post("/keys/{key_id}/encrypt")
async def encrypt_value(key_id: str, payload: EncryptRequest, store: KeyStore = Depends(get_keystore)):
    pub = _lookup(store, key_id).public_key
    try:
        c = encrypt(pub, int(payload.plaintext))
    except PaillierError as exc:
        raise _http_error(exc) from exc
    return {"key_id": key_id, "ciphertext": str(c)}


@app.post("/keys/{key_id}/add")
async def add_values(key_id: str, payload: AddRequest, store: KeyStore = Depends(get_keystore)):
    """Homomorphic addition of two ciphertexts; no decryption involved."""
    pub = _lookup(store, key_id).public_key
    try:
        c = add(pub, int(payload.c1), int(payload.c2))
    except PaillierError as exc:
        raise _http_error(exc) from exc
    return {"key_id": key_id, "ciphertext": str(c)}


@app.post("/keys/{key_id}/aggregate")
async def aggregate_values(key_id: str, payload: AggregateRequest, store: KeyStore = Depends(get_keystore)):
    """Homomorphic sum of any number of ciphertexts (an empty list encrypts 0)."""
    pub = _lookup(store, key_id).public_key
    try:
        values = [int(c) for c in payload.ciphertexts]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="ciphertexts must be decimal integers") from exc
    try:
        agg = aggregate(pub, values)
    except PaillierError as exc:
        raise _http_error(exc) from exc
    return {"key_id": key_id, "count": len(values), "ciphertext": str(agg)}


@app.post("/keys/{key_id}/decrypt")
async def decrypt_value(key_id: str, payload: DecryptRequest, store: KeyStore = Depends(get_keystore)):
    priv = _lookup(store, key_id)
    try:
        m = await run_in_threadpool(decrypt, priv, int(payload.ciphertext))
    except PaillierError as exc:
        raise _http_error(exc) from exc
    return {"key_id": key_id, "plaintext": str(m)}
