import logging

from Crypto.Cipher import AES
from Crypto.Util.Padding import unpad

from .ciphers import BytesLike, to_byte_values
from .errors import CryptoError


logger = logging.getLogger(__name__)

BLOCK_SIZE = AES.block_size
KEY_SIZES = AES.key_size


class BlockCipherCodec:
    @staticmethod
    def decrypt(data: BytesLike, key: BytesLike) -> bytes:
        """Decrypt an AES-CBC payload whose first block is the IV.

        Args:
            data (BytesLike): IV followed by the ciphertext.
            key (BytesLike): The site key, 16, 24 or 32 bytes long.

        Raises:
            CryptoError: The key size, the ciphertext length or the padding is wrong.

        Returns:
            bytes: The plaintext without its PKCS#7 padding.
        """
        data = to_byte_values(data)
        key = to_byte_values(key)

        if len(key) not in KEY_SIZES:
            raise CryptoError(f"Invalid key length {len(key)}, expected one of {KEY_SIZES}.")
        if len(data) < BLOCK_SIZE:
            raise CryptoError("The payload is shorter than the initialization vector.")

        iv, ciphertext = data[:BLOCK_SIZE], data[BLOCK_SIZE:]
        if not ciphertext or len(ciphertext) % BLOCK_SIZE:
            raise CryptoError(f"Ciphertext length {len(ciphertext)} is not a multiple of {BLOCK_SIZE}.")

        logger.debug("Decrypting %d blocks.", len(ciphertext) // BLOCK_SIZE)
        cipher = AES.new(key, AES.MODE_CBC, iv)
        try:
            return unpad(cipher.decrypt(ciphertext), BLOCK_SIZE)
        except ValueError as e:
            raise CryptoError(f"Invalid padding: {e}")
