"""
Runtime settings, read once from the environment.
Every consumer also accepts an explicit override so tests stay hermetic.
"""

import os


# ── Key generation ─────────────────────────────────
DEFAULT_KEY_BITS = int(os.getenv("PAILLIER_DEFAULT_KEY_BITS", "2048"))
MIN_KEY_BITS = int(os.getenv("PAILLIER_MIN_KEY_BITS", "512"))
DEFAULT_GENERATOR = os.getenv("PAILLIER_GENERATOR", "simple")

# ── Prime selection ────────────────────────────────
MAX_PRIME_ATTEMPTS = int(os.getenv("PAILLIER_MAX_PRIME_ATTEMPTS", "1000"))
MAX_PRIME_CANDIDATES = int(os.getenv("PAILLIER_MAX_PRIME_CANDIDATES", "20000"))
PRIMALITY_ROUNDS = int(os.getenv("PAILLIER_PRIMALITY_ROUNDS", "40"))

# ── HTTP service ───────────────────────────────────
MAX_KEYS = int(os.getenv("PAILLIER_MAX_KEYS", "100"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("PAILLIER_CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
