"""Test configuration ensuring the project source tree is importable."""

import sys
from pathlib import Path
from typing import Optional


ROOT = Path(__file__).resolve().parent.parent

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


def pack_hunter(source: str, mask: str, interval: int, option: int) -> str:
    """Pack a source string the way the hunter packer does, digits in base option."""
    delimiter = mask[option]
    tokens = []
    for char in source:
        number = ord(char) + interval
        digits = []
        while number:
            number, digit = divmod(number, option)
            digits.append(mask[digit])
        tokens.append("".join(reversed(digits)) or mask[0])
    return delimiter.join(tokens) + delimiter


def hunter_script(source: str, mask: str = "abcdefghij", interval: int = 17, option: int = 9) -> str:
    encoded = pack_hunter(source, mask, interval, option)
    return (
        'var _0x1 = 1;eval(function(h,u,n,t,e,r){r="";for(var i=0,len=h.length;i<len;i++){}'
        f'return decodeURIComponent(escape(r))}}("{encoded}",41,"{mask}",{interval},{option},28))'
    )


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, json_data: Optional[dict] = None) -> None:
        self.text = text
        self.status_code = status_code
        self._json_data = json_data

    def json(self):
        if self._json_data is None:
            raise ValueError("No json body.")
        return self._json_data


class FakeSession:
    """Stands in for requests.Session, answers from a url -> FakeResponse map and records the calls."""

    def __init__(self, responses: dict) -> None:
        self.responses = responses
        self.headers = {}
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses[url]
