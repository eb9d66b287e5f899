import dataclasses
import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from paillier_he.crypto import keys
from paillier_he.crypto.errors import InvalidParameters, NotInvertible, RandomnessError
from paillier_he.crypto.keys import (
    PrivateKey,
    PublicKey,
    generate_key,
    generate_keypair,
    key_from_primes,
    precompute,
    public_key_of,
)
from paillier_he.crypto.paillier import decrypt, encrypt


def test_generated_key_fields(key_512):
    assert key_512.n.bit_length() == 512
    assert key_512.n_squared == key_512.n * key_512.n
    assert key_512.g == key_512.n + 1
    assert key_512.precomputed is not None
    # With g = n + 1, L(g^lambda mod n^2) = lambda, so mu is lambda's inverse.
    assert key_512.mu == pow(key_512.lam, -1, key_512.n)


def test_key_size_2048_is_exact():
    priv = generate_key(random.Random(2048), 2048)
    assert priv.n.bit_length() == 2048


def test_small_key_from_primes(small_key):
    assert small_key.n == 77
    assert small_key.lam == 30
    assert small_key.g == 78
    assert small_key.mu == pow(30, -1, 77)


@pytest.mark.parametrize("bits", [0, 256, 510])
def test_generate_key_rejects_small_sizes(bits, rng):
    with pytest.raises(InvalidParameters):
        generate_key(rng, bits)


def test_generate_key_rejects_odd_sizes(rng):
    with pytest.raises(InvalidParameters):
        generate_key(rng, 1025)


def test_generate_key_rejects_unknown_generator(rng):
    with pytest.raises(InvalidParameters):
        generate_key(rng, 512, generator="fixed")


def test_min_bits_override(rng):
    priv = generate_key(rng, 64, min_bits=64)
    assert priv.n.bit_length() == 64


def test_random_generator_key(rng):
    priv = generate_key(rng, 512, generator="random")
    assert priv.g != priv.n + 1
    assert 1 <= priv.g < priv.n_squared
    for m in (0, 1, 123456789, priv.n - 1):
        assert decrypt(priv, encrypt(priv.public_key, m, random=rng)) == m


def test_generate_key_wraps_source_failure(failing_source):
    with pytest.raises(RandomnessError):
        generate_key(failing_source, 512)


def test_generate_keypair_returns_matching_halves(rng):
    pub, priv = generate_keypair(512, random=rng)
    assert pub is priv.public_key
    assert public_key_of(priv) is pub


@pytest.mark.parametrize("p, q", [(7, 7), (2, 5), (8, 11), (7, 15)])
def test_key_from_primes_rejects_bad_pairs(p, q):
    with pytest.raises(InvalidParameters):
        key_from_primes(p, q)


def test_public_key_validates_generator():
    with pytest.raises(InvalidParameters):
        PublicKey(n=77, g=0)
    with pytest.raises(InvalidParameters):
        PublicKey(n=77, g=77 * 77)


def test_keys_are_immutable(small_key):
    with pytest.raises(dataclasses.FrozenInstanceError):
        small_key.lam = 1
    with pytest.raises(dataclasses.FrozenInstanceError):
        small_key.public_key.n = 91


def test_precompute_is_lazy_and_idempotent():
    priv = PrivateKey(public_key=PublicKey(n=77, g=78), lam=30)
    assert priv.precomputed is None

    first = precompute(priv)
    second = precompute(priv)
    assert first is second
    assert priv.precomputed is first
    assert first.mu == pow(30, -1, 77)


def test_precompute_rejects_corrupt_key():
    # g = 1 has order 1, so L(g^lambda mod n^2) = 0.
    priv = PrivateKey(public_key=PublicKey(n=77, g=1), lam=30)
    with pytest.raises(NotInvertible):
        priv.precompute()
    assert priv.precomputed is None


def test_concurrent_first_use_publishes_one_block(key_512):
    priv = PrivateKey(public_key=key_512.public_key, lam=key_512.lam)
    with ThreadPoolExecutor(max_workers=16) as pool:
        blocks = list(pool.map(lambda _: priv.precompute(), range(64)))
    assert all(block is blocks[0] for block in blocks)
    assert blocks[0].mu == key_512.mu


def test_random_generator_gives_up_on_degenerate_source(constant_source):
    # The constant source always offers g = 1, whose order is never a multiple of n.
    with pytest.raises(RandomnessError):
        key_from_primes(7, 11, generator="random", random=constant_source)


@pytest.mark.parametrize("generator", ["simple", "random"])
def test_key_build_computes_mu_once(generator, rng, monkeypatch):
    tried = []
    real = keys._accelerator

    def recording(n, n_squared, g, lam):
        tried.append(g)
        return real(n, n_squared, g, lam)

    monkeypatch.setattr(keys, "_accelerator", recording)
    priv = key_from_primes(7, 11, generator=generator, random=rng)

    assert tried[-1] == priv.g
    assert tried.count(priv.g) == 1
    assert priv.precomputed is not None
    assert priv.mu == real(priv.n, priv.n_squared, priv.g, priv.lam)


def test_top_level_package_exports_the_caller_api(small_key, rng):
    import paillier_he

    pub = paillier_he.public_key_of(small_key)
    c = paillier_he.add(pub, paillier_he.encrypt(pub, 32, random=rng), paillier_he.encrypt(pub, 17, random=rng))
    assert paillier_he.decrypt(small_key, c) == 49
    assert paillier_he.generate_key is generate_key
    assert paillier_he.key_from_primes is key_from_primes
    assert issubclass(paillier_he.PlaintextOutOfRange, paillier_he.PaillierError)
