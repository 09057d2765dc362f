import dataclasses
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import ConfigError, PageDecoderError


if TYPE_CHECKING:
    from .materialize import DelimiterSplit, TemplateMaterializer


STAGE_KINDS = (
    "hex",
    "substitution",
    "xor",
    "block_cipher",
    "inflate",
    "base64",
    "packer",
    "alphabet",
    "reverse",
    "strip_prefix",
    "strip_suffix",
    "text",
    "json",
)

CONVERSIONS = ("str", "int", "hex", "bytes")


@dataclasses.dataclass(frozen=True)
class ContextValue:
    """A stage parameter filled in per call from the values found on the chapter page.

    Args:
        name (str): Key to look up in the context mapping.
        convert (str): How to convert the raw value, "str", "int", "hex" (an int written in base 16) or "bytes".
    """

    name: str
    convert: str = "str"

    def __post_init__(self) -> None:
        if self.convert not in CONVERSIONS:
            raise ConfigError(f"Unknown conversion {self.convert!r} for context value {self.name!r}.")

    def resolve(self, context: Mapping[str, Any]) -> Any:
        try:
            value = context[self.name]
        except KeyError:
            raise ConfigError(f"Missing context value {self.name!r}.")

        try:
            if self.convert == "int":
                return int(value)
            if self.convert == "hex":
                return format(int(value), "x")
            if self.convert == "bytes":
                return value if isinstance(value, (bytes, bytearray)) else str(value).encode("utf-8")
        except (TypeError, ValueError):
            raise ConfigError(f"Context value {self.name!r} can't be converted to {self.convert}.")
        return str(value)


@dataclasses.dataclass(frozen=True)
class StageDescriptor:
    kind: str
    params: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in STAGE_KINDS:
            raise ConfigError(f"Unknown stage kind {self.kind!r}.")

    def resolved_params(self, context: Mapping[str, Any]) -> dict:
        """Replace every ContextValue in the params with its value for this call."""
        return {
            key: value.resolve(context) if isinstance(value, ContextValue) else value
            for key, value in self.params.items()
        }


@dataclasses.dataclass(frozen=True)
class CipherProfile:
    name: str
    stages: Tuple[StageDescriptor, ...]
    materializer: Union["DelimiterSplit", "TemplateMaterializer"]
    base_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("A cipher profile needs a name.")
        if self.materializer is None:
            raise ConfigError(f"Profile {self.name!r} has no materializer.")
        # Lists passed in by the loader are frozen into a tuple
        object.__setattr__(self, "stages", tuple(self.stages))
        for stage in self.stages:
            if not isinstance(stage, StageDescriptor):
                raise ConfigError(f"Profile {self.name!r} has a malformed stage: {stage!r}.")


@dataclasses.dataclass(frozen=True)
class UrlTemplate:
    """How to generate the page urls of a chapter.

    Exactly one of entries or count is used. Entries may be a sequence of
    per-page mappings whose keys are available to the pattern, or a delimited
    string split on delimiter. The pattern is a str.format string that can use
    base, index (zero-based), number (one-based) and the entry fields.
    """

    base: str
    pattern: str = "{base}{entry}"
    entries: Optional[Union[str, Sequence[Any]]] = None
    count: Optional[int] = None
    delimiter: str = ";"


@dataclasses.dataclass(frozen=True)
class Page:
    index: int
    url: str

    def as_tuple(self) -> Tuple[int, str]:
        return self.index, self.url


@dataclasses.dataclass()
class Resolution:
    profile: str
    pages: List[Page] = dataclasses.field(default_factory=list)
    error: Optional[PageDecoderError] = dataclasses.field(default=None)
    failed_stage: Optional[str] = dataclasses.field(default=None)
    trace: List[str] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[Page]:
        """Return the pages or raise the error that stopped the pipeline."""
        if self.error is not None:
            raise self.error
        return self.pages


TemplateBuilder = Callable[[Any, Mapping[str, Any]], UrlTemplate]
