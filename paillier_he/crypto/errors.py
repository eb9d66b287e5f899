"""Error taxonomy shared by key generation and the cipher operations."""


class PaillierError(Exception):
    """Base class for every failure raised by this package."""


class InvalidParameters(PaillierError, ValueError):
    """Key size, primes, generator or blinding factor are unusable."""


class RandomnessError(PaillierError):
    """The injected randomness source raised while being read."""


class PrimeSelectionExhausted(PaillierError):
    """An attempt guard tripped before a suitable prime (pair) was found."""


class PlaintextOutOfRange(PaillierError, ValueError):
    pass


class CiphertextOutOfRange(PaillierError, ValueError):
    pass


class NotInvertible(PaillierError, ArithmeticError):
    """The decryption accelerator does not exist: the key material is corrupt."""
