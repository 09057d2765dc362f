#!/usr/bin/python3
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from .constants import ImpVar
from .errors import DecodeError, FetchError, PageDecoderError
from .model import CipherProfile, Page
from .packer import PackerTokenCodec
from .pipeline import PipelineOrchestrator
from .profiles import get_profile


logger = logging.getLogger(__name__)


class ExternalBase(ABC):
    """Fetches a chapter page and hands the obfuscated payload found on it to the site's profile."""

    site = ""
    profile_name = ""

    def __init__(
        self,
        registry: Optional[Mapping[str, CipherProfile]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._profile = get_profile(self.profile_name, registry)
        self._orchestrator = PipelineOrchestrator(self._profile)
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": ImpVar.USER_AGENT})

    def _send(self, session: requests.Session, method: str, url: str, **kwargs) -> requests.Response:
        headers = {"User-Agent": ImpVar.USER_AGENT, **kwargs.pop("headers", {})}
        try:
            response = session.request(method, url, headers=headers, timeout=ImpVar.REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s request to %s failed: %s", self.site, url, e)
            raise FetchError(self.site, url)

        if response.status_code != 200:
            raise FetchError(self.site, url, response)
        return response

    def _request(self, method: str, url: str, use_cookies: bool = True, **kwargs) -> requests.Response:
        """Make a request with the configured timeout.

        Raises:
            FetchError: The request failed or didn't return a 200.
        """
        if use_cookies:
            return self._send(self._session, method, url, **kwargs)
        with requests.Session() as session:
            return self._send(session, method, url, **kwargs)

    def _soup(self, chapter_url: str) -> BeautifulSoup:
        response = self._request("GET", chapter_url)
        return BeautifulSoup(response.text, "html.parser")

    @abstractmethod
    def extract(self, chapter_url: str) -> Tuple[str, Dict[str, Any]]:
        """Get the obfuscated payload and the values needed to decode it."""

    def page_list(self, chapter_url: str) -> List[Page]:
        """Get the ordered page urls of a chapter.

        Raises:
            PageDecoderError: Fetching, extracting or decoding failed.
        """
        payload, context = self.extract(chapter_url)
        logger.debug("%s payload of %d characters, context %s", self.site, len(payload), context)
        return self._orchestrator.run(payload, context)


class ScanManga(ExternalBase):
    site = "scanmanga"
    profile_name = "scanmanga"

    def _packed_script(self, soup: BeautifulSoup) -> str:
        for script in soup.find_all("script"):
            text = script.string or ""
            if "h,u,n,t,e,r" in text:
                return text
        raise DecodeError("Couldn't find the packed script on the chapter page.")

    def _api_domain(self, unpacked: str, packed: str) -> str:
        for pattern in (ImpVar.SCANMANGA_API_RE, ImpVar.SCANMANGA_API_ALT_RE):
            for script in (unpacked, packed):
                match = pattern.search(script)
                if match is not None:
                    return match.group(1)
        logger.debug("No api domain in the script, using %s", ImpVar.SCANMANGA_API_DOMAIN)
        return ImpVar.SCANMANGA_API_DOMAIN

    def extract(self, chapter_url: str) -> Tuple[str, Dict[str, Any]]:
        soup = self._soup(chapter_url)
        packed = self._packed_script(soup)
        unpacked = PackerTokenCodec.unpack(packed)

        sml, sme = PackerTokenCodec.extract(unpacked, ImpVar.SCANMANGA_PARAMS_RE, 1, 2)
        (chapter_id,) = PackerTokenCodec.extract(packed, ImpVar.SCANMANGA_IDC_RE)
        api_url = f"https://{self._api_domain(unpacked, packed)}/lel/{chapter_id}.json"

        chapter = urlparse(chapter_url)
        response = self._request(
            "POST",
            api_url,
            use_cookies=False,
            headers={
                "Content-Type": "application/json; charset=UTF-8",
                "Origin": f"{chapter.scheme}://{chapter.netloc}",
                "Referer": chapter_url,
                "Token": ImpVar.SCANMANGA_API_TOKEN,
            },
            data=json.dumps({"a": sme, "b": sml}, separators=(",", ":")),
        )
        return response.text, {"chapter_id": int(chapter_id)}


class Japscan(ExternalBase):
    site = "japscan"
    profile_name = "japscan"

    def extract(self, chapter_url: str) -> Tuple[str, Dict[str, Any]]:
        soup = self._soup(chapter_url)

        # The attribute name changes (data-atad, data-f3db1f, ...), the longest one holds the payload
        payload = None
        for element in soup.find_all("i"):
            for name, value in element.attrs.items():
                if not name.startswith("data-") or name == "data-index" or not isinstance(value, str):
                    continue
                if payload is None or len(value) > len(payload):
                    payload = value

        if payload is None or len(payload) < ImpVar.JAPSCAN_PREFIX_LENGTH:
            raise DecodeError("Couldn't find the encrypted data on the chapter page.")
        return payload, {}


class CrunchyScan(ExternalBase):
    site = "crunchyscan"
    profile_name = "crunchyscan"

    def extract(self, chapter_url: str) -> Tuple[str, Dict[str, Any]]:
        soup = self._soup(chapter_url)
        for script in soup.find_all("script"):
            match = ImpVar.CRUNCHYSCAN_IMAGES_RE.search(script.string or "")
            if match is not None:
                return match.group(1), {}
        raise DecodeError("Couldn't find the image list on the chapter page.")


SITES: Dict[str, Type[ExternalBase]] = {
    "scan-manga": ScanManga,
    "japscan": Japscan,
    "crunchyscan": CrunchyScan,
}


def site_for_url(url: str) -> Type[ExternalBase]:
    """Get the site class that handles the url.

    Raises:
        PageDecoderError: No site handles the url.
    """
    match = ImpVar.SITE_URL_RE.match(url)
    if match is None:
        raise PageDecoderError(f"{url} is not a supported chapter url.")
    return SITES[match.group(1).lower()]
