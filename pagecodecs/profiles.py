import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from .base64variant import Base64VariantCodec
from .constants import ImpVar
from .errors import ConfigError, DecodeError
from .hexcodec import HexCodec
from .materialize import DelimiterSplit, TemplateMaterializer
from .model import CipherProfile, ContextValue, StageDescriptor, UrlTemplate


logger = logging.getLogger(__name__)

KEYED_KINDS = ("substitution", "xor", "block_cipher")


def scanmanga_template(payload: Any, context: Mapping[str, Any]) -> UrlTemplate:
    """Build the page urls out of the lel api json.

    The json looks like {"dN": host, "s": path, "v": version, "p": {"1": {"f": name, "e": ext}, ...}}
    and page n is https://host/path/version/name.ext.

    Raises:
        DecodeError: The page numbers aren't 1 to n without gaps or a page lacks its file name.
    """
    host = str(payload["dN"])
    if "://" not in host:
        host = f"https://{host}"
    base = f"{host.rstrip('/')}/{payload['s']}/{payload['v']}/"

    pages = payload["p"]
    if isinstance(pages, list):
        pages = {str(number): page for number, page in enumerate(pages, start=1)}

    ordered = sorted(pages.items(), key=lambda item: int(item[0]))
    numbers = [int(number) for number, _ in ordered]
    if numbers != list(range(1, len(numbers) + 1)):
        raise DecodeError(f"The chapter has missing pages: {numbers}.")

    entries = [page for _, page in ordered]
    for number, page in ordered:
        if not isinstance(page, Mapping) or "f" not in page or "e" not in page:
            raise DecodeError(f"Page {number} has no file name and extension: {page!r}.")

    return UrlTemplate(base=base, pattern="{base}{f}.{e}", entries=entries)


SCANMANGA = CipherProfile(
    name="scanmanga",
    base_url=ImpVar.SCANMANGA_URL,
    stages=(
        StageDescriptor("base64"),
        StageDescriptor("inflate"),
        StageDescriptor("strip_suffix", {"suffix": ContextValue("chapter_id", "hex")}),
        StageDescriptor("reverse"),
        StageDescriptor("base64"),
        StageDescriptor("text"),
        StageDescriptor("json"),
    ),
    materializer=TemplateMaterializer(scanmanga_template),
)

JAPSCAN = CipherProfile(
    name="japscan",
    base_url=ImpVar.JAPSCAN_URL,
    stages=(
        StageDescriptor("strip_prefix", {"length": ImpVar.JAPSCAN_PREFIX_LENGTH}),
        StageDescriptor("alphabet", {"reference": ImpVar.JAPSCAN_REFERENCE, "mapping": ImpVar.JAPSCAN_MAPPING}),
        StageDescriptor("base64"),
        StageDescriptor("text"),
        StageDescriptor("json", {"field": "imagesLink"}),
    ),
    materializer=DelimiterSplit(base_url=ImpVar.JAPSCAN_URL, suffix=ImpVar.JAPSCAN_IMAGE_SUFFIX),
)

CRUNCHYSCAN = CipherProfile(
    name="crunchyscan",
    base_url=ImpVar.CRUNCHYSCAN_URL,
    stages=(StageDescriptor("json"),),
    materializer=DelimiterSplit(
        decoys=(ImpVar.CRUNCHYSCAN_DECOY,),
        base_url=ImpVar.CRUNCHYSCAN_URL,
        prefixes=("http", "blob:", "data:", "/"),
    ),
)

BUILTIN_PROFILES: Mapping[str, CipherProfile] = MappingProxyType(
    {profile.name: profile for profile in (SCANMANGA, JAPSCAN, CRUNCHYSCAN)}
)


def _parse_value(value: Any) -> Any:
    """Turn the {"hex": ...}, {"base64": ...}, {"text": ...} and {"context": ...} forms into stage params."""
    if not isinstance(value, dict):
        return value
    if "context" in value:
        return ContextValue(value["context"], value.get("convert", "str"))
    if "hex" in value:
        return HexCodec.decode(value["hex"])
    if "base64" in value:
        return Base64VariantCodec.decode(value["base64"])
    if "text" in value:
        return str(value["text"])
    raise ConfigError(f"Unrecognised parameter value {value!r}.")


class _ConfiguredTemplate:
    def __init__(self, base: str, pattern: str, count: Any = None, delimiter: str = ";") -> None:
        self.base = base
        self.pattern = pattern
        self.count = _parse_value(count)
        self.delimiter = delimiter

    def __call__(self, plaintext: Any, context: Mapping[str, Any]) -> UrlTemplate:
        try:
            base = self.base.format(**context)
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigError(f"The template base {self.base!r} can't be filled from the context: {e}")
        if self.count is None:
            if isinstance(plaintext, (bytes, bytearray)):
                plaintext = plaintext.decode("utf-8", errors="replace")
            return UrlTemplate(base=base, pattern=self.pattern, entries=plaintext, delimiter=self.delimiter)

        count = self.count.resolve(context) if isinstance(self.count, ContextValue) else self.count
        return UrlTemplate(base=base, pattern=self.pattern, count=int(count))


def _parse_materializer(name: str, base_url: Optional[str], config: Any) -> Union[DelimiterSplit, TemplateMaterializer]:
    if not isinstance(config, dict) or len(config) != 1:
        raise ConfigError(f"Profile {name!r} needs exactly one of 'split' or 'template' in 'materialize'.")

    if "split" in config:
        split = config["split"]
        prefixes = split.get("prefixes")
        return DelimiterSplit(
            delimiter=split.get("delimiter", ";"),
            decoys=tuple(split.get("decoys", ())),
            base_url=split.get("base_url", base_url),
            suffix=split.get("suffix", ""),
            prefixes=tuple(prefixes) if prefixes is not None else None,
        )
    if "template" in config:
        template = config["template"]
        try:
            builder = _ConfiguredTemplate(
                base=template["base"],
                pattern=template.get("pattern", "{base}{entry}"),
                count=template.get("count"),
                delimiter=template.get("delimiter", ";"),
            )
        except KeyError as e:
            raise ConfigError(f"Profile {name!r} template is missing {e}.")
        return TemplateMaterializer(builder)

    raise ConfigError(f"Profile {name!r} has an unknown materializer {list(config)!r}.")


def parse_profile(data: Mapping[str, Any]) -> CipherProfile:
    """Build a cipher profile out of its json description."""
    try:
        name = data["name"]
        stages = [
            StageDescriptor(
                stage["kind"],
                {key: _parse_value(value) for key, value in stage.items() if key != "kind"},
            )
            for stage in data["stages"]
        ]
        materialize = data["materialize"]
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Malformed cipher profile: missing {e}.")

    for stage in stages:
        key = stage.params.get("key")
        if stage.kind in KEYED_KINDS and not isinstance(key, (str, bytes, bytearray, ContextValue)):
            raise ConfigError(f"Profile {name!r} {stage.kind} stage needs a text, hex, base64 or context key.")

    base_url = data.get("base_url")
    return CipherProfile(
        name=name,
        stages=tuple(stages),
        materializer=_parse_materializer(name, base_url, materialize),
        base_url=base_url,
    )


def load_profiles(path: Union[str, Path]) -> Dict[str, CipherProfile]:
    """Read the extra cipher profiles from a json file.

    Raises:
        ConfigError: The file can't be read or a profile in it is malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as profiles_file:
            data = json.load(profiles_file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Couldn't read the profiles file {path}: {e}")

    entries = data.get("profiles", []) if isinstance(data, dict) else data
    profiles = {}
    for entry in entries:
        profile = parse_profile(entry)
        profiles[profile.name] = profile
        logger.debug("Loaded cipher profile %s with %d stages.", profile.name, len(profile.stages))
    return profiles


def build_registry(profiles_file: Optional[Union[str, Path]] = None) -> Mapping[str, CipherProfile]:
    """The profiles in use for this run, the built-ins plus any from the profiles file.

    Called once at startup, the returned mapping is read-only.
    """
    registry = dict(BUILTIN_PROFILES)
    profiles_file = profiles_file or ImpVar.PROFILES_FILE
    if profiles_file:
        registry.update(load_profiles(profiles_file))
    return MappingProxyType(registry)


def get_profile(name: str, registry: Optional[Mapping[str, CipherProfile]] = None) -> CipherProfile:
    registry = BUILTIN_PROFILES if registry is None else registry
    try:
        return registry[name]
    except KeyError:
        raise ConfigError(f"No cipher profile named {name!r}. Known profiles: {', '.join(sorted(registry))}.")
