"""
Prime generation and selection of the (p, q) pair behind a Paillier modulus.
"""

import logging
from typing import Optional, Tuple

from paillier_he import config
from paillier_he.crypto.errors import InvalidParameters, PrimeSelectionExhausted
from paillier_he.crypto.randomness import RandomSource, randbits, randrange, resolve

logger = logging.getLogger(__name__)


def _small_primes(limit: int) -> list[int]:
    sieve = bytearray([1]) * limit
    sieve[0:2] = b"\x00\x00"
    for i in range(2, int(limit ** 0.5) + 1):
        if sieve[i]:
            sieve[i * i::i] = bytearray(len(sieve[i * i::i]))
    return [i for i, flag in enumerate(sieve) if flag]


SMALL_PRIMES = _small_primes(2000)
_SMALL_PRIME_SET = frozenset(SMALL_PRIMES)
# Below this bound, trial division by SMALL_PRIMES is a complete test.
_TRIAL_DIVISION_BOUND = SMALL_PRIMES[-1] ** 2


def is_probable_prime(n: int, rounds: Optional[int] = None, random: Optional[RandomSource] = None) -> bool:
    """
    Miller-Rabin with witnesses drawn from ``random`` (the system CSPRNG by default).

    A biased ``random`` weakens the test: a source that always yields the same
    witness turns every round into the same single-base check.
    """
    if n < 2:
        return False
    if n in _SMALL_PRIME_SET:
        return True
    if any((n % p) == 0 for p in SMALL_PRIMES):
        return False
    if n < _TRIAL_DIVISION_BOUND:
        return True

    rounds = config.PRIMALITY_ROUNDS if rounds is None else rounds
    random = resolve(random)

    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for _ in range(rounds):
        a = randrange(random, 2, n - 1)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def generate_prime(
    bits: int,
    random: Optional[RandomSource] = None,
    max_candidates: Optional[int] = None,
    rounds: Optional[int] = None,
    witness_random: Optional[RandomSource] = None,
) -> int:
    """
    Return a probable prime of exactly ``bits`` bits.

    The two top bits of every candidate are set, so the product of two such
    primes always has exactly ``2 * bits`` bits. Candidates come from
    ``random``; Miller-Rabin witnesses come from ``witness_random``, which
    defaults to the system CSPRNG so an injected candidate source cannot bias
    the primality test.
    """
    if bits < 2:
        raise InvalidParameters(f"cannot generate a {bits}-bit prime")
    random = resolve(random)
    max_candidates = config.MAX_PRIME_CANDIDATES if max_candidates is None else max_candidates

    top = 0b11 << (bits - 2)
    for _ in range(max_candidates):
        candidate = randbits(random, bits) | top | 1
        if is_probable_prime(candidate, rounds=rounds, random=witness_random):
            return candidate
    raise PrimeSelectionExhausted(f"no {bits}-bit prime among {max_candidates} candidates")


def rejection_reason(p: int, q: int) -> Optional[str]:
    """Why the ordered pair ``p <= q`` cannot back a modulus, or ``None``."""
    if q % (p - 1) == 0:
        return "p-1 divides q"
    if p == q:
        return "primes are equal"
    return None


def select_prime_pair(
    bit_length: int,
    *,
    random: Optional[RandomSource] = None,
    max_attempts: Optional[int] = None,
    max_candidates: Optional[int] = None,
    rounds: Optional[int] = None,
    witness_random: Optional[RandomSource] = None,
) -> Tuple[int, int]:
    """
    Draw two distinct ``bit_length``-bit primes, ordered so that ``p <= q``.

    ``bit_length`` is the size of each prime, not of their product. The whole
    pair is redrawn whenever ``p-1`` divides ``q`` or ``p == q``.
    """
    random = resolve(random)
    max_attempts = config.MAX_PRIME_ATTEMPTS if max_attempts is None else max_attempts

    for attempt in range(1, max_attempts + 1):
        first = generate_prime(bit_length, random, max_candidates, rounds, witness_random)
        second = generate_prime(bit_length, random, max_candidates, rounds, witness_random)
        p, q = min(first, second), max(first, second)

        reason = rejection_reason(p, q)
        if reason is None:
            logger.info("selected %d-bit prime pair after %d attempt(s)", bit_length, attempt)
            return p, q
        logger.debug("prime pair rejected on attempt %d: %s", attempt, reason)

    raise PrimeSelectionExhausted(
        f"no acceptable {bit_length}-bit prime pair after {max_attempts} attempts"
    )
