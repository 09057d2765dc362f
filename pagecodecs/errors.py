import json
from typing import Optional

from requests.models import Response


class PageDecoderError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class DecodeError(PageDecoderError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class CryptoError(PageDecoderError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class ConfigError(PageDecoderError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class EmptyResultError(PageDecoderError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class FetchError(PageDecoderError):
    def __init__(self, site: str, url: str, error_response: Optional[Response] = None) -> None:

        http_error_codes = {
            "400": "Bad request.",
            "401": "Unauthorised.",
            "403": "Forbidden.",
            "404": "Not found.",
            "429": "Too many requests.",
            "503": "Service unavailable.",
        }

        self.site = site
        self.url = url

        if error_response is None:
            super().__init__(f"{site}: no response for {url}.")
            return

        status_code = error_response.status_code
        error_message = http_error_codes.get(str(status_code), "Unexpected response.")

        # Some endpoints return a json body with the reason
        try:
            detail = error_response.json().get("message")
        except (json.JSONDecodeError, ValueError, AttributeError):
            detail = None

        if detail:
            error_message = f"{error_message} {detail}"

        super().__init__(f"{site} {status_code}: {error_message} ({url})")
