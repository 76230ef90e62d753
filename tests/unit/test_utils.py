import hashlib

from rag_kit.utils import sha256_hex, truncate_text


def test_sha256_hex_treats_str_as_utf8() -> None:
    expected = hashlib.sha256("héllo".encode("utf-8")).hexdigest()

    assert sha256_hex("héllo") == expected
    assert sha256_hex("héllo".encode("utf-8")) == expected


def test_truncate_text() -> None:
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a long sentence", 8) == "a lon..."
    assert truncate_text("abcdef", 2) == "ab"
