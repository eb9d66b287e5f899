"""
Paillier key material: public/private key structures, key generation and the
one-time precomputation of the decryption accelerator mu.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple

from paillier_he import config
from paillier_he.crypto.errors import InvalidParameters, NotInvertible, RandomnessError
from paillier_he.crypto.primes import is_probable_prime, rejection_reason, select_prime_pair
from paillier_he.crypto.randomness import RandomSource, random_coprime, resolve

logger = logging.getLogger(__name__)

SIMPLE_GENERATOR = "simple"
RANDOM_GENERATOR = "random"
GENERATORS = (SIMPLE_GENERATOR, RANDOM_GENERATOR)

# Random generators of unsuitable order are rare; this only trips on a broken source.
MAX_GENERATOR_DRAWS = 100


@dataclass(frozen=True)
class PublicKey:
    n: int
    g: int
    n_squared: int = field(init=False, repr=False)

    def __post_init__(self):
        if self.n < 2:
            raise InvalidParameters("modulus must be at least 2")
        object.__setattr__(self, "n_squared", self.n * self.n)
        if not 1 <= self.g < self.n_squared:
            raise InvalidParameters("generator must lie in [1, n^2)")

    @property
    def bits(self) -> int:
        return self.n.bit_length()


@dataclass(frozen=True)
class Precomputed:
    mu: int


@dataclass(frozen=True)
class PrivateKey:
    """
    Private key: the public part plus the Carmichael value lambda.

    ``Precomputed`` is filled exactly once, under a lock, and published with a
    single assignment so concurrent readers never see a partial value.
    """

    public_key: PublicKey
    lam: int
    _precomputed: Optional[Precomputed] = field(default=None, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.lam < 1:
            raise InvalidParameters("lambda must be positive")

    @property
    def n(self) -> int:
        return self.public_key.n

    @property
    def n_squared(self) -> int:
        return self.public_key.n_squared

    @property
    def g(self) -> int:
        return self.public_key.g

    @property
    def precomputed(self) -> Optional[Precomputed]:
        return self._precomputed

    @property
    def mu(self) -> int:
        return self.precompute().mu

    def precompute(self) -> Precomputed:
        """Compute mu on first use; later calls return the cached block."""
        precomputed = self._precomputed
        if precomputed is not None:
            return precomputed
        with self._lock:
            if self._precomputed is None:
                mu = _accelerator(self.n, self.n_squared, self.g, self.lam)
                object.__setattr__(self, "_precomputed", Precomputed(mu=mu))
            return self._precomputed


def l_function(u: int, n: int) -> int:
    """L(u) = (u - 1) / n, exact for every u = 1 (mod n) this module produces."""
    return (u - 1) // n


def _accelerator(n: int, n_squared: int, g: int, lam: int) -> int:
    k = l_function(pow(g, lam, n_squared), n)
    try:
        return pow(k, -1, n)
    except ValueError as exc:
        raise NotInvertible("L(g^lambda mod n^2) has no inverse modulo n") from exc


def _lcm(a: int, b: int) -> int:
    return abs(a * b) // math.gcd(a, b)


def precompute(priv: PrivateKey) -> Precomputed:
    return priv.precompute()


def public_key_of(priv: PrivateKey) -> PublicKey:
    return priv.public_key


def _check_generator(generator: str) -> None:
    if generator not in GENERATORS:
        raise InvalidParameters(f"unknown generator strategy {generator!r}")


def _choose_generator(
    n: int, n_squared: int, lam: int, generator: str, random: RandomSource
) -> Tuple[int, int]:
    """Return ``(g, mu)``; mu is computed once, for the accepted generator only."""
    if generator == SIMPLE_GENERATOR:
        g = n + 1
        return g, _accelerator(n, n_squared, g, lam)

    # A random g is usable only when its order is a multiple of n,
    # i.e. when L(g^lambda mod n^2) is invertible modulo n.
    for _ in range(MAX_GENERATOR_DRAWS):
        g = random_coprime(random, n, bound=n_squared)
        try:
            mu = _accelerator(n, n_squared, g, lam)
        except NotInvertible:
            logger.debug("random generator rejected: order is not a multiple of n")
            continue
        return g, mu
    raise RandomnessError(f"no generator of suitable order after {MAX_GENERATOR_DRAWS} draws")


def _build_key(p: int, q: int, generator: str, random: RandomSource) -> PrivateKey:
    n = p * q
    n_squared = n * n
    lam = _lcm(p - 1, q - 1)
    g, mu = _choose_generator(n, n_squared, lam, generator, random)

    priv = PrivateKey(public_key=PublicKey(n=n, g=g), lam=lam)
    # Fresh key, not yet shared: no other thread can observe the slot.
    object.__setattr__(priv, "_precomputed", Precomputed(mu=mu))
    return priv


def key_from_primes(
    p: int,
    q: int,
    *,
    generator: str = SIMPLE_GENERATOR,
    random: Optional[RandomSource] = None,
) -> PrivateKey:
    """
    Build a key from caller-supplied primes.

    No size floor applies here, which makes it the entry point for small,
    hand-checkable keys; the pair rules of ``select_prime_pair`` still hold.
    """
    _check_generator(generator)
    random = resolve(random)
    for value in (p, q):
        if not is_probable_prime(value):
            raise InvalidParameters(f"{value} is not prime")

    p, q = min(p, q), max(p, q)
    reason = rejection_reason(p, q)
    if reason is not None:
        raise InvalidParameters(f"unusable prime pair: {reason}")
    return _build_key(p, q, generator, random)


def generate_key(
    random: Optional[RandomSource] = None,
    bits: Optional[int] = None,
    *,
    generator: Optional[str] = None,
    max_attempts: Optional[int] = None,
    max_candidates: Optional[int] = None,
    min_bits: Optional[int] = None,
) -> PrivateKey:
    """
    Generate a private key whose modulus n has exactly ``bits`` bits.

    ``bits`` must be even: each prime is drawn with ``bits // 2`` bits. The
    returned key is already precomputed.
    """
    bits = config.DEFAULT_KEY_BITS if bits is None else bits
    generator = config.DEFAULT_GENERATOR if generator is None else generator
    min_bits = config.MIN_KEY_BITS if min_bits is None else min_bits

    if not isinstance(bits, int) or isinstance(bits, bool):
        raise InvalidParameters("bits must be an integer")
    if bits < max(min_bits, 4):
        raise InvalidParameters(f"key size {bits} is below the minimum of {min_bits} bits")
    if bits % 2:
        raise InvalidParameters("key size must be an even number of bits")
    _check_generator(generator)

    random = resolve(random)
    p, q = select_prime_pair(
        bits // 2,
        random=random,
        max_attempts=max_attempts,
        max_candidates=max_candidates,
    )
    priv = _build_key(p, q, generator, random)
    logger.info("generated %d-bit Paillier key (generator=%s)", priv.n.bit_length(), generator)
    return priv


def generate_keypair(
    bits: Optional[int] = None,
    *,
    random: Optional[RandomSource] = None,
    generator: Optional[str] = None,
) -> Tuple[PublicKey, PrivateKey]:
    priv = generate_key(random, bits, generator=generator)
    return priv.public_key, priv
