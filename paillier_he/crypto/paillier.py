import math
from typing import Iterable, Optional

from paillier_he.crypto.errors import CiphertextOutOfRange, InvalidParameters, PlaintextOutOfRange
from paillier_he.crypto.keys import PrivateKey, PublicKey
from paillier_he.crypto.randomness import RandomSource, random_coprime, resolve

Plaintext = int
Ciphertext = int


def _require_int(value, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")


def validate_plaintext(pub: PublicKey, m: Plaintext) -> None:
    _require_int(m, "plaintext")
    if not 0 <= m < pub.n:
        raise PlaintextOutOfRange("message out of range")


def validate_ciphertext(pub: PublicKey, c: Ciphertext) -> None:
    _require_int(c, "ciphertext")
    if not 0 <= c < pub.n_squared:
        raise CiphertextOutOfRange("ciphertext out of range")


def encrypt(
    pub: PublicKey,
    m: Plaintext,
    r: Optional[int] = None,
    *,
    random: Optional[RandomSource] = None,
) -> Ciphertext:
    """
    c = g^m * r^n mod n^2, with a fresh blinding factor r in Z*_n per call.

    Passing ``r`` explicitly makes the result deterministic (known-answer tests).
    """
    validate_plaintext(pub, m)
    if r is None:
        r = random_coprime(resolve(random), pub.n)
    elif not (1 <= r < pub.n and math.gcd(r, pub.n) == 1):
        raise InvalidParameters("blinding factor must be a unit modulo n")

    c1 = pow(pub.g, m, pub.n_squared)
    c2 = pow(r, pub.n, pub.n_squared)
    return (c1 * c2) % pub.n_squared


def decrypt(priv: PrivateKey, c: Ciphertext) -> Plaintext:
    """m = L(c^lambda mod n^2) * mu mod n; precomputes mu on first use."""
    validate_ciphertext(priv.public_key, c)
    mu = priv.precompute().mu
    x = pow(c, priv.lam, priv.n_squared)
    l_val = (x - 1) // priv.n
    return (l_val * mu) % priv.n


def add(pub: PublicKey, c1: Ciphertext, c2: Ciphertext) -> Ciphertext:
    """D(c1 * c2 mod n^2) = D(c1) + D(c2) mod n."""
    validate_ciphertext(pub, c1)
    validate_ciphertext(pub, c2)
    return (c1 * c2) % pub.n_squared


add_cipher = add


def add_plain(pub: PublicKey, c: Ciphertext, m: Plaintext) -> Ciphertext:
    validate_ciphertext(pub, c)
    validate_plaintext(pub, m)
    return (c * pow(pub.g, m, pub.n_squared)) % pub.n_squared


def mul_plain(pub: PublicKey, c: Ciphertext, k: Plaintext) -> Ciphertext:
    """D(c^k mod n^2) = k * D(c) mod n."""
    validate_ciphertext(pub, c)
    validate_plaintext(pub, k)
    return pow(c, k, pub.n_squared)


def rerandomize(pub: PublicKey, c: Ciphertext, *, random: Optional[RandomSource] = None) -> Ciphertext:
    validate_ciphertext(pub, c)
    r = random_coprime(resolve(random), pub.n)
    return (c * pow(r, pub.n, pub.n_squared)) % pub.n_squared


def aggregate(
    pub: PublicKey,
    ciphertexts: Iterable[Ciphertext],
    *,
    random: Optional[RandomSource] = None,
) -> Ciphertext:
    """Homomorphic sum, seeded with a fresh encryption of zero."""
    agg = encrypt(pub, 0, random=random)
    for c in ciphertexts:
        agg = add(pub, agg, c)
    return agg
