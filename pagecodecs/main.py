#!/usr/bin/python3
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from tqdm import tqdm

from .constants import ImpVar
from .errors import ConfigError, PageDecoderError
from .external import SITES, ExternalBase, site_for_url
from .model import Page
from .pipeline import PipelineOrchestrator
from .profiles import build_registry, get_profile


logger = logging.getLogger(__name__)


def parse_context(pairs: List[str]) -> Dict[str, str]:
    """Turn the key=value pairs from the command line into a context mapping."""
    context = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigError(f"Context values are written key=value, got {pair!r}.")
        context[key.strip()] = value.strip()
    return context


class PageDecoder:
    def __init__(self, vargs: Mapping[str, Any]) -> None:
        self._vargs = vargs
        self.registry = build_registry(vargs.get("profiles"))
        self.context = parse_context(vargs.get("context") or [])
        self.output: Optional[Path] = Path(vargs["output"]) if vargs.get("output") else None
        self._sites = {site.profile_name: site for site in SITES.values()}

    def _site(self, url: str) -> ExternalBase:
        site_name = self._vargs.get("site")
        if site_name:
            try:
                site_class = self._sites[site_name]
            except KeyError:
                raise ConfigError(f"Unknown site {site_name!r}, choose from {', '.join(sorted(self._sites))}.")
        else:
            site_class = site_for_url(url)
        return site_class(registry=self.registry)

    def resolve_url(self, url: str) -> List[Page]:
        """Fetch the chapter and decode its page list."""
        return self._site(url).page_list(url)

    def decode_payload(self, payload_path: Path, profile_name: str) -> List[Page]:
        """Decode a payload saved to a file, no network involved."""
        profile = get_profile(profile_name, self.registry)
        payload = payload_path.read_text(encoding="utf-8").strip()
        return PipelineOrchestrator(profile).run(payload, self.context)

    def _file_resolver(self, filename: Path) -> Dict[str, List[Page]]:
        """Resolve every chapter url listed in the file, one per line."""
        with open(filename, "r", encoding="utf-8") as bulk_file:
            links = [line.strip() for line in bulk_file.readlines()]
        links = [link for link in links if link and ImpVar.URL_RE.match(link)]

        if not links:
            raise PageDecoderError(f"No chapter links found in {filename}.")

        resolved = {}
        for link in tqdm(links, desc="Chapters"):
            try:
                resolved[link] = self.resolve_url(link)
            except PageDecoderError as e:
                # A failed chapter doesn't stop the rest of the file
                tqdm.write(f"{link}: {e}")
        return resolved

    def _export(self, resolved: Dict[str, List[Page]]) -> None:
        if self.output is not None:
            data = {source: [page.as_tuple() for page in pages] for source, pages in resolved.items()}
            with open(self.output, "w", encoding="utf-8") as json_file:
                json.dump(data, json_file, indent=4, ensure_ascii=False)
            print(f"Saved {sum(len(p) for p in resolved.values())} pages to {self.output}.")
            return

        for source, pages in resolved.items():
            print(f'{"-"*69}\n{source}: {len(pages)} pages\n{"-"*69}')
            for page in pages:
                print(f"{page.index}: {page.url}")

    def main(self) -> None:
        target = self._vargs["id"]
        logger.debug("Profiles in use: %s", ", ".join(sorted(self.registry)))

        if self._vargs.get("payload"):
            profile_name = self._vargs.get("site")
            if not profile_name:
                raise ConfigError("Decoding a saved payload needs --site to pick the profile.")
            resolved = {target: self.decode_payload(Path(target), profile_name)}
        elif Path(target).is_file():
            resolved = self._file_resolver(Path(target))
        else:
            resolved = {target: self.resolve_url(target)}

        self._export(resolved)


def main(vargs: Mapping[str, Any]) -> None:
    PageDecoder(vargs).main()
