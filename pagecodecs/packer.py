import logging
import re
from typing import Dict, List, Optional, Pattern, Union

from .constants import ImpVar
from .errors import ConfigError, DecodeError


logger = logging.getLogger(__name__)


class PackerTokenCodec:
    """Reverses the "hunter" packer, eval(function(h,u,n,t,e,r){...}("...",N,"mask",interval,option,N)).

    The packed source is a run of tokens split by mask[option]. Every token
    character stands for its position in the mask, the positions written one
    after the other form a number in base option, and that number minus the
    interval is the character code of one source character.
    """

    @staticmethod
    def decode(encoded: str, mask: str, interval: int, option: int, radix: Optional[int] = None) -> str:
        """Decode a packed token string.

        Args:
            encoded (str): The token string.
            mask (str): The custom alphabet.
            interval (int): Offset added to every character code.
            option (int): Position in the mask of the token delimiter.
            radix (Optional[int], optional): Base the digit strings are written in. Defaults to option.

        Raises:
            ConfigError: The option points outside the mask or the radix is unusable.
            DecodeError: A token holds a character outside the mask or doesn't parse.

        Returns:
            str: The unpacked source.
        """
        if not 0 <= option < len(mask):
            raise ConfigError(f"Delimiter index {option} is outside the {len(mask)} character mask.")

        radix = option if radix is None else radix
        if not 2 <= radix <= 36:
            raise ConfigError(f"Unsupported token radix {radix}.")

        delimiter = mask[option]
        tokens = [token for token in encoded.split(delimiter) if token]

        # A repeated mask character maps to its last position
        reverse: Dict[str, int] = {char: position for position, char in enumerate(mask)}

        decoded: List[str] = []
        for token in tokens:
            try:
                digits = "".join(str(reverse[c]) for c in token)
            except KeyError as e:
                raise DecodeError(f"Invalid masked character: {e.args[0]!r}")

            # int() would accept signs, spaces and underscores, the digits here never hold those
            if not digits.isdigit():
                raise DecodeError(f"Failed to parse token {digits!r} as base {radix}.")
            try:
                number = int(digits, radix)
            except ValueError:
                raise DecodeError(f"Failed to parse token {digits!r} as base {radix}.")

            try:
                decoded.append(chr(number - interval))
            except (ValueError, OverflowError):
                raise DecodeError(f"Token {digits!r} gives the invalid character code {number - interval}.")

        logger.debug("Unpacked %d tokens.", len(tokens))
        return "".join(decoded)

    @classmethod
    def unpack(cls, script: str) -> str:
        """Find the packer call in a script and decode it."""
        match = ImpVar.PACKER_RE.search(script)
        if match is None:
            raise DecodeError("Failed to match the obfuscation pattern.")

        encoded, mask, interval, option = match.groups()
        return cls.decode(encoded, mask, int(interval), int(option))

    @staticmethod
    def extract(text: str, pattern: Union[str, Pattern[str]], *groups: int) -> List[str]:
        """Pull the values of the given groups out of the first match of the pattern.

        Raises:
            DecodeError: The pattern doesn't match.
        """
        match = re.search(pattern, text)
        if match is None:
            raise DecodeError(f"Failed to find {getattr(pattern, 'pattern', pattern)!r} in the script.")
        return [match.group(group) for group in (groups or (1,))]
