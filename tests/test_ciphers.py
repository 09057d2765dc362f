import pytest

from pagecodecs.ciphers import AlphabetCipher, SubstitutionCipher, XorCipher
from pagecodecs.constants import ImpVar
from pagecodecs.errors import ConfigError


def test_substitution_encrypt_abc():
    encrypted = SubstitutionCipher.encrypt("abc", "XY")
    assert list(encrypted) == [(97 + 88) % 256, (98 + 89) % 256, (99 + 88) % 256]
    assert SubstitutionCipher.decrypt(encrypted, "XY") == b"abc"


def test_substitution_wraps_below_zero():
    assert SubstitutionCipher.decrypt(b"\x01", b"\x02") == b"\xff"
    assert SubstitutionCipher.encrypt(b"\xff", b"\x02") == b"\x01"


def test_substitution_truncates_code_points():
    # U+0141 is cut down to 0x41
    assert SubstitutionCipher.decrypt("Ł", "\x00") == b"A"


@pytest.mark.parametrize("key", ["k", "XY", "a much longer key than the text", b"\x00\xff"])
def test_substitution_inverse(key):
    text = "http://a/1.jpg;http://a/2.jpg"
    assert SubstitutionCipher.decrypt(SubstitutionCipher.encrypt(text, key), key) == text.encode()


def test_substitution_empty_key():
    with pytest.raises(ConfigError):
        SubstitutionCipher.decrypt("abc", "")


@pytest.mark.parametrize("key", [b"k", b"\x13\x37", "mdecoder"])
def test_xor_is_its_own_inverse(key):
    data = bytes(range(256))
    assert XorCipher.transform(XorCipher.transform(data, key), key) == data


def test_xor_known_values():
    assert XorCipher.transform(b"\x00\x01\x02\x03", b"\xff\x0f") == b"\xff\x0e\xfd\x0c"


def test_xor_empty_key():
    with pytest.raises(ConfigError):
        XorCipher.transform(b"abc", b"")


@pytest.mark.parametrize("key", [5, None, ["k"]])
def test_key_must_be_text_or_bytes(key):
    with pytest.raises(ConfigError):
        XorCipher.transform(b"abc", key)
    with pytest.raises(ConfigError):
        SubstitutionCipher.decrypt(b"abc", key)


def test_alphabet_translate_keeps_other_characters():
    assert AlphabetCipher.translate("ab+c/=", "abc", "xyz") == "xy+z/="
    assert AlphabetCipher.translate("dD9", "abc", "xyz") == "dD9"


def test_alphabet_first_occurrence_wins():
    assert AlphabetCipher.translate("a", "aa", "xy") == "x"


def test_alphabet_japscan_round_trip():
    text = "eyJpbWFnZXNMaW5rIjpbXX0="
    encrypted = AlphabetCipher.translate(text, ImpVar.JAPSCAN_MAPPING, ImpVar.JAPSCAN_REFERENCE)
    assert encrypted != text
    assert AlphabetCipher.translate(encrypted, ImpVar.JAPSCAN_REFERENCE, ImpVar.JAPSCAN_MAPPING) == text


def test_alphabet_length_mismatch():
    with pytest.raises(ConfigError):
        AlphabetCipher.translate("abc", "abc", "xy")
