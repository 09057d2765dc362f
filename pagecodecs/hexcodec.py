import binascii
import logging
from typing import Union

from .errors import DecodeError


logger = logging.getLogger(__name__)


class HexCodec:
    @staticmethod
    def decode(text: Union[str, bytes]) -> bytes:
        """Convert a hex string into bytes, two digits at a time.

        A trailing unpaired digit is dropped without complaint, the sites
        sometimes send odd length strings and the last digit never carries data.

        Args:
            text (Union[str, bytes]): The hex string.

        Raises:
            DecodeError: A consumed pair holds a non-hex character.

        Returns:
            bytes: The decoded bytes.
        """
        if len(text) % 2:
            logger.debug("Dropping the unpaired hex digit at the end of a %d long string.", len(text))
            text = text[:-1]

        try:
            return binascii.unhexlify(text)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid hex string: {e}")

    @staticmethod
    def encode(data: bytes) -> str:
        return binascii.hexlify(data).decode("ascii")
