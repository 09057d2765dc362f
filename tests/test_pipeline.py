import base64
import json
import zlib

import pytest
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad

from pagecodecs.ciphers import AlphabetCipher, SubstitutionCipher
from pagecodecs.constants import ImpVar
from pagecodecs.errors import ConfigError, CryptoError, DecodeError, EmptyResultError
from pagecodecs.materialize import DelimiterSplit
from pagecodecs.model import CipherProfile, ContextValue, StageDescriptor
from pagecodecs.pipeline import PipelineOrchestrator
from pagecodecs.profiles import CRUNCHYSCAN, JAPSCAN, SCANMANGA


LEL_JSON = {
    "dN": "cdn.scan-manga.com",
    "s": "1234",
    "v": "56",
    "p": {"2": {"f": "page-b", "e": "png"}, "1": {"f": "page-a", "e": "jpg"}},
}


def scanmanga_payload(data: dict, chapter_id: int, strip_padding: bool = True) -> str:
    inner = base64.b64encode(json.dumps(data).encode()).decode()
    reversed_inner = inner[::-1]
    if strip_padding:
        reversed_inner = reversed_inner.lstrip("=")
    inflated = reversed_inner + format(chapter_id, "x")
    return base64.b64encode(zlib.compress(inflated.encode())).decode()


def japscan_payload(links: list) -> str:
    encoded = base64.b64encode(json.dumps({"imagesLink": links}).encode()).decode()
    return "junk123" + AlphabetCipher.translate(encoded, ImpVar.JAPSCAN_MAPPING, ImpVar.JAPSCAN_REFERENCE)


def test_scanmanga_chain():
    pages = PipelineOrchestrator(SCANMANGA).run(scanmanga_payload(LEL_JSON, 48879), {"chapter_id": 48879})
    assert [page.as_tuple() for page in pages] == [
        (0, "https://cdn.scan-manga.com/1234/56/page-a.jpg"),
        (1, "https://cdn.scan-manga.com/1234/56/page-b.png"),
    ]


def test_scanmanga_chain_with_padding_kept():
    payload = scanmanga_payload(LEL_JSON, 7, strip_padding=False)
    assert len(PipelineOrchestrator(SCANMANGA).run(payload, {"chapter_id": 7})) == 2


def test_scanmanga_missing_chapter_id():
    resolution = PipelineOrchestrator(SCANMANGA).resolve(scanmanga_payload(LEL_JSON, 7))
    assert not resolution.ok
    assert isinstance(resolution.error, ConfigError)
    assert resolution.failed_stage == "stage3:strip_suffix"
    assert resolution.pages == []


def test_scanmanga_wrong_chapter_id_fails():
    # The hex suffix stays on the text and the final base64 can't be read
    with pytest.raises(DecodeError):
        PipelineOrchestrator(SCANMANGA).run(scanmanga_payload(LEL_JSON, 48879), {"chapter_id": 1})


def test_scanmanga_page_gap_is_an_error():
    data = dict(LEL_JSON, p={"1": {"f": "a", "e": "jpg"}, "3": {"f": "c", "e": "jpg"}})
    resolution = PipelineOrchestrator(SCANMANGA).resolve(scanmanga_payload(data, 7), {"chapter_id": 7})
    assert isinstance(resolution.error, DecodeError)
    assert resolution.failed_stage == "Materialize"


def test_scanmanga_page_without_file_name():
    data = dict(LEL_JSON, p={"1": "page-a.jpg"})
    resolution = PipelineOrchestrator(SCANMANGA).resolve(scanmanga_payload(data, 7), {"chapter_id": 7})
    assert isinstance(resolution.error, DecodeError)
    assert resolution.failed_stage == "Materialize"


def test_scanmanga_missing_json_field_is_wrapped():
    data = {key: value for key, value in LEL_JSON.items() if key != "p"}
    with pytest.raises(DecodeError):
        PipelineOrchestrator(SCANMANGA).run(scanmanga_payload(data, 7), {"chapter_id": 7})


def test_japscan_chain():
    links = ["https://cdn.japscan.foo/lel/1.jpg", "https://cdn.japscan.foo/lel/2.jpg"]
    pages = PipelineOrchestrator(JAPSCAN).run(japscan_payload(links))
    assert [page.url for page in pages] == [f"{link}?o=1" for link in links]


def test_japscan_empty_list():
    with pytest.raises(EmptyResultError):
        PipelineOrchestrator(JAPSCAN).run(japscan_payload([]))


def test_crunchyscan_chain():
    payload = json.dumps(["/storage/1.webp", "https://crunchyscan.fr/get-image/2", "https://cdn.crunchyscan.fr/3.webp", ""])
    pages = PipelineOrchestrator(CRUNCHYSCAN).run(payload)
    assert [page.as_tuple() for page in pages] == [
        (0, f"{ImpVar.CRUNCHYSCAN_URL}/storage/1.webp"),
        (1, "https://cdn.crunchyscan.fr/3.webp"),
    ]


def test_trace_on_success():
    resolution = PipelineOrchestrator(CRUNCHYSCAN).resolve('["https://a/1.jpg"]')
    assert resolution.ok
    assert resolution.trace == ["Start", "stage1:json", "Materialize", "Done"]
    assert resolution.unwrap() == resolution.pages


def test_failure_stops_the_chain():
    profile = CipherProfile(
        name="hex-then-text",
        stages=(StageDescriptor("hex"), StageDescriptor("text")),
        materializer=DelimiterSplit(),
    )
    resolution = PipelineOrchestrator(profile).resolve("zz")
    assert resolution.failed_stage == "stage1:hex"
    assert resolution.trace[-1].startswith("Failed(")
    assert "stage2:text" not in resolution.trace
    with pytest.raises(DecodeError):
        resolution.unwrap()


def test_cipher_chain_with_context_key():
    key = b"0123456789abcdef"
    iv = bytes(16)
    plaintext = "http://a/1.jpg;http://a/2.jpg;"
    substituted = SubstitutionCipher.encrypt(plaintext, "chapter-42")
    ciphertext = iv + AES.new(key, AES.MODE_CBC, iv).encrypt(pad(substituted, 16))

    profile = CipherProfile(
        name="chain",
        stages=(
            StageDescriptor("hex"),
            StageDescriptor("block_cipher", {"key": key}),
            StageDescriptor("substitution", {"key": ContextValue("chapter_key")}),
            StageDescriptor("text"),
        ),
        materializer=DelimiterSplit(decoys=("get-image",)),
    )
    pages = PipelineOrchestrator(profile).run(ciphertext.hex(), {"chapter_key": "chapter-42"})
    assert [page.as_tuple() for page in pages] == [(0, "http://a/1.jpg"), (1, "http://a/2.jpg")]


def test_cipher_chain_wrong_key():
    profile = CipherProfile(
        name="aes",
        stages=(StageDescriptor("block_cipher", {"key": b"short"}),),
        materializer=DelimiterSplit(),
    )
    with pytest.raises(CryptoError):
        PipelineOrchestrator(profile).run(bytes(32))


def test_packer_stage_with_explicit_parameters():
    profile = CipherProfile(
        name="packed",
        stages=(StageDescriptor("packer", {"mask": "0123456789abcdef", "interval": 32, "option": 0, "radix": 16}),),
        materializer=DelimiterSplit(),
    )
    resolution = PipelineOrchestrator(profile).resolve("68041")
    # "H!" has no scheme and the profile no base url
    assert isinstance(resolution.error, ConfigError)
    assert resolution.failed_stage == "Materialize"


def test_unknown_stage_kind():
    with pytest.raises(ConfigError):
        StageDescriptor("rot13")


def test_profile_without_materializer():
    with pytest.raises(ConfigError):
        CipherProfile(name="broken", stages=(), materializer=None)
