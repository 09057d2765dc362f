import base64
import binascii
import re
from typing import Union

from .errors import DecodeError


_WHITESPACE = re.compile(r"[\t\n\r ]+")


class Base64VariantCodec:
    @staticmethod
    def repair_padding(text: str) -> str:
        """Put back the "=" padding the sites strip from reversed payloads."""
        text = _WHITESPACE.sub("", text)
        padding = (4 - len(text) % 4) % 4
        return text + "=" * padding

    @classmethod
    def decode(cls, text: Union[str, bytes]) -> bytes:
        """Decode standard base64 that may be missing its padding.

        Raises:
            DecodeError: The text holds characters outside the base64 alphabet or has an impossible length.
        """
        if isinstance(text, (bytes, bytearray)):
            try:
                text = bytes(text).decode("ascii")
            except UnicodeDecodeError:
                raise DecodeError("Base64 payload is not ascii.")

        try:
            return base64.b64decode(cls.repair_padding(text), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 payload: {e}")

    @staticmethod
    def encode(data: bytes, strip: bool = False) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return encoded.rstrip("=") if strip else encoded
