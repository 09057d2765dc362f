import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .base64variant import Base64VariantCodec
from .blockcipher import BlockCipherCodec
from .ciphers import AlphabetCipher, SubstitutionCipher, XorCipher
from .deflate import DeflateCodec
from .errors import DecodeError, PageDecoderError
from .hexcodec import HexCodec
from .model import CipherProfile, Page, Resolution, StageDescriptor
from .packer import PackerTokenCodec


logger = logging.getLogger(__name__)

Payload = Union[str, bytes]


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Stage output is not utf-8 text: {e}")
    if not isinstance(value, str):
        raise DecodeError(f"Expected text, got {type(value).__name__}.")
    return value


def _hex(value: Any) -> bytes:
    return HexCodec.decode(value)


def _substitution(value: Any, key: Any, mode: str = "decrypt") -> bytes:
    if mode == "encrypt":
        return SubstitutionCipher.encrypt(value, key)
    return SubstitutionCipher.decrypt(value, key)


def _xor(value: Any, key: Any) -> bytes:
    return XorCipher.transform(value, key)


def _block_cipher(value: Any, key: Any) -> bytes:
    return BlockCipherCodec.decrypt(value, key)


def _inflate(value: Any) -> str:
    return DeflateCodec.inflate(value)


def _base64(value: Any) -> bytes:
    return Base64VariantCodec.decode(value)


def _packer(
    value: Any,
    mask: Optional[str] = None,
    interval: Optional[int] = None,
    option: Optional[int] = None,
    radix: Optional[int] = None,
) -> str:
    script = _as_text(value)
    if mask is None:
        return PackerTokenCodec.unpack(script)
    return PackerTokenCodec.decode(script, mask, int(interval), int(option), radix)


def _alphabet(value: Any, reference: str, mapping: str) -> str:
    return AlphabetCipher.translate(_as_text(value), reference, mapping)


def _reverse(value: Any) -> Union[str, bytes]:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)[::-1]
    return _as_text(value)[::-1]


def _strip_prefix(value: Any, length: Optional[int] = None, prefix: Optional[str] = None) -> str:
    text = _as_text(value)
    if prefix is not None:
        return text[len(prefix):] if text.startswith(prefix) else text
    length = int(length or 0)
    if len(text) < length:
        raise DecodeError(f"Payload is shorter than its {length} character prefix.")
    return text[length:]


def _strip_suffix(value: Any, suffix: str) -> str:
    # Only a real suffix is removed, the same digits elsewhere in the text are left alone
    text = _as_text(value)
    suffix = str(suffix)
    if suffix and text.endswith(suffix):
        return text[: -len(suffix)]
    return text


def _text(value: Any) -> str:
    return _as_text(value)


def _json(value: Any, field: Optional[str] = None) -> Any:
    try:
        data = json.loads(_as_text(value))
    except json.JSONDecodeError as e:
        raise DecodeError(f"Stage output is not json: {e}")

    if field is not None:
        for key in field.split("."):
            try:
                data = data[key]
            except (KeyError, TypeError):
                raise DecodeError(f"The json has no {field!r} field.")
    return data


STAGE_HANDLERS: Dict[str, Callable[..., Any]] = {
    "hex": _hex,
    "substitution": _substitution,
    "xor": _xor,
    "block_cipher": _block_cipher,
    "inflate": _inflate,
    "base64": _base64,
    "packer": _packer,
    "alphabet": _alphabet,
    "reverse": _reverse,
    "strip_prefix": _strip_prefix,
    "strip_suffix": _strip_suffix,
    "text": _text,
    "json": _json,
}


class PipelineOrchestrator:
    """Runs the stages of a cipher profile over one chapter payload.

    Start -> stage 1 -> ... -> stage n -> Materialize -> Done. The first stage
    that fails moves the run to Failed and nothing after it is run.
    """

    def __init__(self, profile: CipherProfile) -> None:
        self.profile = profile

    def _run_stage(self, stage: StageDescriptor, value: Any, context: Mapping[str, Any]) -> Any:
        handler = STAGE_HANDLERS[stage.kind]
        params = stage.resolved_params(context)
        try:
            return handler(value, **params)
        except PageDecoderError:
            raise
        except (TypeError, ValueError, KeyError, IndexError) as e:
            raise DecodeError(f"{stage.kind} stage failed: {e}")

    def _materialize(self, value: Any, context: Mapping[str, Any]) -> List[Page]:
        try:
            return self.profile.materializer(value, context)
        except PageDecoderError:
            raise
        except (TypeError, ValueError, KeyError, IndexError, AttributeError) as e:
            raise DecodeError(f"Couldn't build the page urls: {e}")

    def resolve(self, payload: Payload, context: Optional[Mapping[str, Any]] = None) -> Resolution:
        """Decode the payload into a page list without raising.

        Args:
            payload (Payload): The obfuscated payload taken from the chapter page.
            context (Optional[Mapping[str, Any]], optional): Values found next to the payload, e.g. the chapter id.

        Returns:
            Resolution: The pages, or the error and the state the run failed in.
        """
        context = dict(context or {})
        resolution = Resolution(profile=self.profile.name, trace=["Start"])
        state = "Start"
        value: Any = payload

        try:
            for position, stage in enumerate(self.profile.stages, start=1):
                state = f"stage{position}:{stage.kind}"
                resolution.trace.append(state)
                value = self._run_stage(stage, value, context)
                logger.debug("%s %s -> %s", self.profile.name, state, type(value).__name__)

            state = "Materialize"
            resolution.trace.append(state)
            pages = self._materialize(value, context)
        except PageDecoderError as e:
            logger.debug("%s failed at %s: %s", self.profile.name, state, e)
            resolution.error = e
            resolution.failed_stage = state
            resolution.trace.append(f"Failed({e})")
            return resolution

        resolution.pages = pages
        resolution.trace.append("Done")
        logger.info("%s resolved %d pages.", self.profile.name, len(pages))
        return resolution

    def run(self, payload: Payload, context: Optional[Mapping[str, Any]] = None) -> List[Page]:
        """Decode the payload into a page list, raising the error of the failed stage."""
        return self.resolve(payload, context).unwrap()
