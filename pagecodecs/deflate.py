import logging
import zlib
from typing import List, Tuple

from .ciphers import BytesLike, to_byte_values
from .errors import DecodeError


logger = logging.getLogger(__name__)

# Tried in order, the first framing that doesn't error wins
FRAMINGS: Tuple[Tuple[str, int], ...] = (
    ("zlib", zlib.MAX_WBITS),
    ("raw", -zlib.MAX_WBITS),
)


class DeflateCodec:
    @staticmethod
    def _inflate_with(data: bytes, wbits: int) -> bytes:
        # A truncated stream stops the decompressor without an error, what came out so far is kept
        decompressor = zlib.decompressobj(wbits)
        inflated = decompressor.decompress(data)
        return inflated + decompressor.flush()

    @classmethod
    def inflate(cls, data: BytesLike) -> str:
        """Inflate zlib framed data, falling back to headerless deflate.

        Args:
            data (BytesLike): The compressed bytes.

        Raises:
            DecodeError: Neither framing could read the data.

        Returns:
            str: The inflated text.
        """
        data = to_byte_values(data)
        failures: List[str] = []

        for framing, wbits in FRAMINGS:
            try:
                inflated = cls._inflate_with(data, wbits)
            except zlib.error as e:
                logger.debug("%s inflate failed: %s", framing, e)
                failures.append(f"{framing}: {e}")
                continue

            logger.debug("Inflated %d bytes into %d with %s framing.", len(data), len(inflated), framing)
            return inflated.decode("utf-8", errors="replace")

        raise DecodeError(f"Couldn't inflate the payload ({'; '.join(failures)}).")
