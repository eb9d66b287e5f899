"""Additively homomorphic Paillier encryption, with an optional HTTP service."""

__version__ = "0.1.0"

from paillier_he.crypto import (  # noqa: E402
    CiphertextOutOfRange,
    InvalidParameters,
    NotInvertible,
    PaillierError,
    PlaintextOutOfRange,
    Precomputed,
    PrimeSelectionExhausted,
    PrivateKey,
    PublicKey,
    RandomnessError,
    add,
    add_cipher,
    add_plain,
    aggregate,
    decrypt,
    encrypt,
    generate_key,
    generate_keypair,
    key_from_primes,
    mul_plain,
    precompute,
    public_key_of,
    rerandomize,
    select_prime_pair,
)
