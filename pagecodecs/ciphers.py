import re
from typing import Dict, Union

from .errors import ConfigError


BytesLike = Union[str, bytes, bytearray]

_ALPHANUMERIC = re.compile(r"[A-Z0-9]", re.IGNORECASE)


def to_byte_values(data: BytesLike) -> bytes:
    """Strings are read as their code points cut down to a single byte."""
    if isinstance(data, str):
        return bytes(ord(c) & 0xFF for c in data)
    return bytes(data)


def _check_key(key: BytesLike) -> bytes:
    # bytes(5) would quietly give five zero bytes
    if not isinstance(key, (str, bytes, bytearray)):
        raise ConfigError(f"The cipher key must be text or bytes, got {type(key).__name__}.")
    key_bytes = to_byte_values(key)
    if not key_bytes:
        raise ConfigError("The cipher key is empty.")
    return key_bytes


class SubstitutionCipher:
    """Vigenère style cipher over byte values with a repeating key."""

    @staticmethod
    def decrypt(data: BytesLike, key: BytesLike) -> bytes:
        key_bytes = _check_key(key)
        key_length = len(key_bytes)
        return bytes((b - key_bytes[i % key_length] + 256) % 256 for i, b in enumerate(to_byte_values(data)))

    @staticmethod
    def encrypt(data: BytesLike, key: BytesLike) -> bytes:
        key_bytes = _check_key(key)
        key_length = len(key_bytes)
        return bytes((b + key_bytes[i % key_length]) % 256 for i, b in enumerate(to_byte_values(data)))


class XorCipher:
    @staticmethod
    def transform(data: BytesLike, key: BytesLike) -> bytes:
        """Xor the data against the repeating key, the same call encrypts and decrypts.

        Args:
            data (BytesLike): The bytes to transform.
            key (BytesLike): The key, reused from the start once exhausted.

        Returns:
            bytes: The transformed data.
        """
        key_bytes = _check_key(key)
        a = len(key_bytes)
        transformed = bytearray(to_byte_values(data))
        for s in range(len(transformed)):
            transformed[s] ^= key_bytes[s % a]
        return bytes(transformed)


class AlphabetCipher:
    @staticmethod
    def translate(text: str, reference: str, mapping: str) -> str:
        """Swap every letter and digit of the text from the reference alphabet into the mapping alphabet.

        Characters that are not in the reference alphabet are kept as they are.

        Raises:
            ConfigError: The alphabets are empty or their lengths differ.
        """
        if not reference or len(reference) != len(mapping):
            raise ConfigError("The substitution alphabets must be non-empty and the same length.")

        table: Dict[str, str] = {}
        for position, char in enumerate(reference):
            # The first position of a repeated character is the one used
            table.setdefault(char, mapping[position])

        return _ALPHANUMERIC.sub(lambda match: table.get(match.group(0), match.group(0)), text)
