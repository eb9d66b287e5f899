"""
Injectable randomness.

Anything exposing ``getrandbits(k)`` and ``randrange(start, stop)`` works as a
source: ``secrets.SystemRandom`` in production, ``random.Random(seed)`` in tests.
"""

import math
import secrets
from typing import Optional, Protocol

from paillier_he.crypto.errors import RandomnessError


class RandomSource(Protocol):
    def getrandbits(self, k: int) -> int: ...

    def randrange(self, start: int, stop: int) -> int: ...


_SYSTEM_RANDOM = secrets.SystemRandom()

# A healthy source almost never needs more than a couple of draws.
MAX_COPRIME_DRAWS = 1000


def resolve(random: Optional[RandomSource]) -> RandomSource:
    """Return ``random`` or the process-wide CSPRNG when none was injected."""
    return _SYSTEM_RANDOM if random is None else random


def randbits(random: RandomSource, k: int) -> int:
    try:
        return random.getrandbits(k)
    except Exception as exc:
        raise RandomnessError(f"randomness source failed drawing {k} bits") from exc


def randrange(random: RandomSource, start: int, stop: int) -> int:
    try:
        return random.randrange(start, stop)
    except Exception as exc:
        raise RandomnessError("randomness source failed drawing from a range") from exc


def random_coprime(random: RandomSource, modulus: int, bound: Optional[int] = None) -> int:
    """Draw ``r`` uniformly from ``[1, bound)`` with ``gcd(r, modulus) == 1``."""
    if bound is None:
        bound = modulus
    for _ in range(MAX_COPRIME_DRAWS):
        r = randrange(random, 1, bound)
        if math.gcd(r, modulus) == 1:
            return r
    raise RandomnessError(f"no value coprime to the modulus after {MAX_COPRIME_DRAWS} draws")
