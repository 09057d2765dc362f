import dataclasses
import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from .errors import ConfigError, DecodeError, EmptyResultError
from .model import Page, TemplateBuilder, UrlTemplate


logger = logging.getLogger(__name__)


def _numbered(urls: Sequence[str]) -> List[Page]:
    if not urls:
        raise EmptyResultError("The chapter decoded to zero page urls.")
    return [Page(index=index, url=url) for index, url in enumerate(urls)]


@dataclasses.dataclass(frozen=True)
class DelimiterSplit:
    """Turn a delimited plaintext (or an already split list) into absolute page urls.

    Args:
        delimiter (str): Separator between the urls in a plaintext string.
        decoys (Tuple[str, ...]): Entries containing any of these markers are dropped.
        base_url (Optional[str]): Origin that root-relative entries are joined to.
        suffix (str): Appended to every url.
        prefixes (Optional[Tuple[str, ...]]): When set, only entries starting with one of these are kept.
        predicate (Optional[Callable[[str], bool]]): Extra per-site filter, entries it rejects are dropped.
    """

    delimiter: str = ";"
    decoys: Tuple[str, ...] = ()
    base_url: Optional[str] = None
    suffix: str = ""
    prefixes: Optional[Tuple[str, ...]] = None
    predicate: Optional[Callable[[str], bool]] = None

    def _entries(self, plaintext: Any) -> List[str]:
        if isinstance(plaintext, (bytes, bytearray)):
            plaintext = plaintext.decode("utf-8", errors="replace")
        if isinstance(plaintext, str):
            return plaintext.split(self.delimiter)
        if isinstance(plaintext, (list, tuple)):
            return [str(entry) for entry in plaintext if entry is not None]
        raise DecodeError(f"Can't split a {type(plaintext).__name__} into page urls.")

    def _keep(self, entry: str) -> bool:
        if not entry:
            return False
        if any(decoy in entry for decoy in self.decoys):
            logger.debug("Dropping decoy url %s", entry)
            return False
        if self.prefixes is not None and not entry.startswith(self.prefixes):
            return False
        if self.predicate is not None and not self.predicate(entry):
            return False
        return True

    def _absolute(self, entry: str) -> str:
        if urlparse(entry).scheme:
            return entry
        if not self.base_url:
            raise ConfigError(f"Relative url {entry!r} but the profile has no base url.")
        return urljoin(self.base_url.rstrip("/") + "/", entry)

    def __call__(self, plaintext: Any, context: Mapping[str, Any]) -> List[Page]:
        entries = [entry.strip() for entry in self._entries(plaintext)]
        urls = [self._absolute(entry) + self.suffix for entry in entries if self._keep(entry)]
        return _numbered(urls)


@dataclasses.dataclass(frozen=True)
class TemplateMaterializer:
    builder: TemplateBuilder

    def __call__(self, plaintext: Any, context: Mapping[str, Any]) -> List[Page]:
        return materialize_template(self.builder(plaintext, context))


def materialize_template(template: UrlTemplate) -> List[Page]:
    """Generate the page urls of a template in ascending index order.

    Raises:
        ConfigError: The template has neither entries nor a count, or the pattern refers to a missing field.
        EmptyResultError: The template generated no urls.
    """
    entries = template.entries
    if isinstance(entries, str):
        entries = [entry.strip() for entry in entries.split(template.delimiter) if entry.strip()]

    if entries is None:
        if template.count is None:
            raise ConfigError("A url template needs entries or a page count.")
        if template.count < 0:
            raise ConfigError(f"Invalid page count {template.count}.")
        entries = [None] * template.count

    urls = []
    for index, entry in enumerate(entries):
        if isinstance(entry, Mapping):
            fields = dict(entry)
        else:
            fields = {} if entry is None else {"entry": entry}
        try:
            urls.append(template.pattern.format(base=template.base, index=index, number=index + 1, **fields))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ConfigError(f"The url pattern {template.pattern!r} can't be filled: {e}")

    logger.debug("Template generated %d urls.", len(urls))
    return _numbered(urls)
