from paillier_he.crypto.errors import (
    CiphertextOutOfRange,
    InvalidParameters,
    NotInvertible,
    PaillierError,
    PlaintextOutOfRange,
    PrimeSelectionExhausted,
    RandomnessError,
)
from paillier_he.crypto.keys import (
    GENERATORS,
    Precomputed,
    PrivateKey,
    PublicKey,
    generate_key,
    generate_keypair,
    key_from_primes,
    precompute,
    public_key_of,
)
from paillier_he.crypto.paillier import (
    add,
    add_cipher,
    add_plain,
    aggregate,
    decrypt,
    encrypt,
    mul_plain,
    rerandomize,
    validate_ciphertext,
    validate_plaintext,
)
from paillier_he.crypto.primes import generate_prime, is_probable_prime, select_prime_pair
