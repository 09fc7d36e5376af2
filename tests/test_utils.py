"""
tests/test_utils.py — small helpers and the canonical signing form.
"""
from netdisk.signing import SignaturePayload, sign, signatures_match
from netdisk.utils import decode_filename, iso_from_millis, redact_cookie


def test_canonical_serialization_has_fixed_key_order():
    payload = SignaturePayload("99", 1_700_000_300_000, "grp1", "n-1")
    assert payload.canonical() == (
        b'{"resourceId":"99","expiresAt":1700000300000,"scopeId":"grp1","nonce":"n-1"}'
    )


def test_sign_is_hex_sha256_and_key_dependent():
    payload = SignaturePayload("99", 1_700_000_300_000, "grp1", "n-1")
    tag = sign(payload, "k1")

    assert len(tag) == 64
    assert int(tag, 16) >= 0
    assert tag != sign(payload, "k2")


def test_signatures_match_tolerates_garbage():
    assert signatures_match("abc", "abc") is True
    assert signatures_match("abc", "abd") is False
    assert signatures_match("abc", "") is False
    assert signatures_match("abc", "签名") is False


def test_iso_from_millis():
    assert iso_from_millis(0) == "1970-01-01T00:00:00.000Z"
    assert iso_from_millis(1_699_999_999_999) == "2023-11-14T22:13:19.999Z"


def test_decode_filename():
    assert decode_filename("report.pdf") == "report.pdf"
    assert decode_filename("my%20notes.pdf") == "my notes.pdf"
    # %FF is not valid UTF-8: the raw name is kept.
    assert decode_filename("bad%FF.pdf") == "bad%FF.pdf"


def test_redact_cookie_hides_values():
    assert redact_cookie("uid=42; token=abc") == "uid=***; token=***"
    assert redact_cookie("") == ""
