# backend/tests/test_token_codec.py

import base64
import json
import re

import pytest

from notion_grid.tokens import (
    AudienceMismatch,
    AuthenticationFailed,
    Expired,
    InvalidTokenPayload,
    MalformedToken,
    TokenErrorKind,
    TokenPayload,
    decode,
    encode,
    fingerprint,
)

EXAMPLE_PAYLOAD = {
    "secret": "s3cr3t",
    "primaryResourceId": "db_123",
    "secondaryResourceId": None,
    "issuedAt": 1700000000000,
    "expiresAt": 1715000000000,
    "audience": "widget",
}
BEFORE_EXPIRY = 1700000000001

TOKEN_PATTERN = re.compile(r"v1(\.[A-Za-z0-9_-]+){4}")


def _b64u_decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _b64u_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _replace_segment(token: str, index: int, data: bytes) -> str:
    segments = token.split(".")
    segments[index] = _b64u_encode(data)
    return ".".join(segments)


def test_concrete_example_round_trip(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)

    assert TOKEN_PATTERN.fullmatch(token)
    assert len(token.split(".")) == 5

    decoded = decode(token, token_keys, now=BEFORE_EXPIRY)
    assert decoded.model_dump(by_alias=True) == EXAMPLE_PAYLOAD


def test_round_trip_with_snake_case_payload(token_keys):
    payload = TokenPayload(
        secret="secret_abc",
        primary_resource_id="db-main",
        secondary_resource_id="db-bio",
    )

    decoded = decode(encode(payload, token_keys), token_keys)

    assert decoded == payload
    assert decoded.expires_at is None


def test_same_payload_encodes_to_different_tokens(token_keys):
    first = encode(EXAMPLE_PAYLOAD, token_keys)
    second = encode(EXAMPLE_PAYLOAD, token_keys)

    assert first != second
    # nonce が毎回変わっていること
    assert first.split(".")[2] != second.split(".")[2]
    assert decode(first, token_keys, now=BEFORE_EXPIRY) == decode(
        second, token_keys, now=BEFORE_EXPIRY
    )


@pytest.mark.parametrize("segment_index", [3, 4])
def test_flipping_any_byte_of_ciphertext_or_tag_fails_authentication(token_keys, segment_index):
    token = encode(EXAMPLE_PAYLOAD, token_keys)
    original = _b64u_decode(token.split(".")[segment_index])

    for position in range(len(original)):
        tampered = bytearray(original)
        tampered[position] ^= 0x01
        tampered_token = _replace_segment(token, segment_index, bytes(tampered))

        with pytest.raises(AuthenticationFailed):
            decode(tampered_token, token_keys, now=BEFORE_EXPIRY)


def test_tampered_nonce_fails_authentication(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)
    nonce = bytearray(_b64u_decode(token.split(".")[2]))
    nonce[0] ^= 0xFF

    with pytest.raises(AuthenticationFailed):
        decode(_replace_segment(token, 2, bytes(nonce)), token_keys, now=BEFORE_EXPIRY)


def test_tampered_visible_metadata_fails_authentication(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)
    forged_metadata = json.dumps({"aud": "admin", "ver": "v1"}).encode("utf-8")

    with pytest.raises(AuthenticationFailed):
        decode(_replace_segment(token, 1, forged_metadata), token_keys, audience="admin")


def test_wrong_keys_fail_authentication(token_keys, other_token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)

    with pytest.raises(AuthenticationFailed):
        decode(token, other_token_keys, now=BEFORE_EXPIRY)


def test_expired_payload_is_rejected(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)

    with pytest.raises(Expired):
        decode(token, token_keys, now=EXAMPLE_PAYLOAD["expiresAt"] + 1)


def test_expiry_uses_current_time_by_default(token_keys):
    # 2024-05-06 に期限切れのペイロードは現在時刻では必ず期限切れ
    with pytest.raises(Expired):
        decode(encode(EXAMPLE_PAYLOAD, token_keys), token_keys)


def test_audience_mismatch(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)

    with pytest.raises(AudienceMismatch):
        decode(token, token_keys, audience="admin", now=BEFORE_EXPIRY)

    assert decode(token, token_keys, audience="widget", now=BEFORE_EXPIRY).audience == "widget"


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not-a-token",
        "v1.a.b.c",
        "v1.a.b.c.d.e",
        "v2.e30.AAAAAAAAAAAAAAAA.AAAA.AAAAAAAAAAAAAAAAAAAAAA",
        "v1.e30.AAAAAAAAAAAAAAAA.AA*A.AAAAAAAAAAAAAAAAAAAAAA",
        "v1.e30.AAAA.AAAA.AAAAAAAAAAAAAAAAAAAAAA",
        "v1.e30.AAAAAAAAAAAAAAAA.AAAA.AAAA",
        "v1.e30.AAAAAAAAAAAAAAAA..AAAAAAAAAAAAAAAAAAAAAA",
    ],
)
def test_malformed_tokens(token_keys, token):
    with pytest.raises(MalformedToken) as exc_info:
        decode(token, token_keys)

    assert exc_info.value.kind is TokenErrorKind.MALFORMED


def test_non_canonical_base64_segment_is_malformed(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)
    segments = token.split(".")
    # 16 バイトのタグは 22 文字。末尾文字の未使用ビットを立てても同じバイト列になる。
    last = segments[4][-1]
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
    segments[4] = segments[4][:-1] + alphabet[alphabet.index(last) | 0x01]

    with pytest.raises(MalformedToken):
        decode(".".join(segments), token_keys, now=BEFORE_EXPIRY)


@pytest.mark.parametrize("missing", ["secret", "primaryResourceId"])
def test_encode_requires_secret_and_primary_resource(token_keys, missing):
    payload = dict(EXAMPLE_PAYLOAD)
    payload.pop(missing)

    with pytest.raises(InvalidTokenPayload):
        encode(payload, token_keys)


def test_encode_rejects_blank_values_without_echoing_them(token_keys):
    payload = dict(EXAMPLE_PAYLOAD, primaryResourceId="   ")

    with pytest.raises(InvalidTokenPayload) as exc_info:
        encode(payload, token_keys)

    assert "s3cr3t" not in str(exc_info.value)


def test_token_does_not_contain_plaintext_secret(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)
    visible = _b64u_decode(token.split(".")[1])

    assert b"s3cr3t" not in visible
    assert json.loads(visible) == {"aud": "widget", "ver": "v1"}


def test_correlation_id_is_visible_metadata(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys, correlation_id="AbC12_")
    visible = json.loads(_b64u_decode(token.split(".")[1]))

    assert visible["cid"] == "AbC12_"


def test_license_id_is_visible_and_authenticated(token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys, correlation_id="AbC12_", license_id="lic-1")
    visible = json.loads(_b64u_decode(token.split(".")[1]))

    assert visible == {"aud": "widget", "cid": "AbC12_", "lic": "lic-1", "ver": "v1"}

    forged = json.dumps(dict(visible, lic="lic-2"), sort_keys=True, separators=(",", ":")).encode("utf-8")
    with pytest.raises(AuthenticationFailed):
        decode(_replace_segment(token, 1, forged), token_keys, now=BEFORE_EXPIRY)


def test_payload_repr_hides_secret():
    payload = TokenPayload.model_validate(EXAMPLE_PAYLOAD)

    assert "s3cr3t" not in repr(payload)


def test_fingerprint_is_keyed_and_stable(token_keys, other_token_keys):
    token = encode(EXAMPLE_PAYLOAD, token_keys)

    value = fingerprint(token, token_keys)

    assert re.fullmatch(r"[0-9a-f]{16}", value)
    assert value == fingerprint(token, token_keys)
    assert value != fingerprint(token, other_token_keys)
