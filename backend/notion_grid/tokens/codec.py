# backend/notion_grid/tokens/codec.py

"""
リンクトークンのエンコード / デコード。

形式（区切り文字 "." は base64url のアルファベットに含まれない）:

    v1.<b64url(metadata JSON)>.<b64url(nonce 12B)>.<b64url(ciphertext)>.<b64url(tag 16B)>

- 暗号方式は AES-256-GCM。"<version>.<metadata>" を関連データとして渡すので、
  認証タグは機密ブロックと平文メタデータの両方をカバーする。
- nonce は encode のたびに os.urandom で新規生成する（同一鍵で再利用しない）。
- decode はタグ検証に通るまで復号結果を一切解釈しない。
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import os
import re
from typing import Any, Mapping, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError

from .config import TokenKeys
from .errors import (
    AudienceMismatch,
    AuthenticationFailed,
    Expired,
    InvalidTokenPayload,
    MalformedToken,
)
from .schemas import TokenMetadata, TokenPayload, now_ms

TOKEN_VERSION = "v1"
TOKEN_DELIMITER = "."
NONCE_SIZE = 12
TAG_SIZE = 16
SEGMENT_COUNT = 5

_B64URL_SEGMENT = re.compile(r"[A-Za-z0-9_-]+")


def _b64u_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64u_decode(segment: str) -> bytes:
    """
    パディング無し base64url を厳密にデコードする。

    同じバイト列に戻る別表記（未使用ビットが立っているもの）は不正として弾く。
    """
    if not _B64URL_SEGMENT.fullmatch(segment):
        raise MalformedToken("Token segment is not base64url.")
    try:
        data = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as exc:
        raise MalformedToken("Token segment is not base64url.") from exc
    if _b64u_encode(data) != segment:
        raise MalformedToken("Token segment is not canonical base64url.")
    return data


def _canonical_json(obj: Mapping[str, Any]) -> bytes:
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def _associated_data(version: str, metadata_segment: str) -> bytes:
    return f"{version}{TOKEN_DELIMITER}{metadata_segment}".encode("ascii")


def _coerce_payload(payload: Union[TokenPayload, Mapping[str, Any]]) -> TokenPayload:
    if isinstance(payload, TokenPayload):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidTokenPayload("Token payload must be a mapping or TokenPayload.")
    try:
        return TokenPayload.model_validate(dict(payload))
    except ValidationError as exc:
        # フィールド名だけを返し、値（secret）はメッセージに含めない
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise InvalidTokenPayload(f"Invalid token payload fields: {', '.join(fields)}") from None


def encode(
    payload: Union[TokenPayload, Mapping[str, Any]],
    keys: TokenKeys,
    *,
    correlation_id: Optional[str] = None,
    license_id: Optional[str] = None,
) -> str:
    """
    ペイロードを暗号化し、URL セーフなトークン文字列を返す。

    :param payload: TokenPayload もしくは同じ形の dict（camelCase / snake_case どちらも可）
    :param keys: 暗号鍵と認証鍵のペア
    :param correlation_id: 平文メタデータに載せる相関 ID（ウィジェット ID など）
    :param license_id: 平文メタデータに載せるライセンス ID
    :raises InvalidTokenPayload: secret / primaryResourceId が欠けている場合
    """
    token_payload = _coerce_payload(payload)

    metadata = TokenMetadata(
        ver=TOKEN_VERSION,
        aud=token_payload.audience,
        cid=correlation_id,
        lic=license_id,
    )
    metadata_segment = _b64u_encode(_canonical_json(metadata.model_dump(exclude_none=True)))

    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(keys.encryption_key).encrypt(
        nonce,
        _canonical_json(token_payload.model_dump(by_alias=True)),
        _associated_data(TOKEN_VERSION, metadata_segment),
    )
    # cryptography は ciphertext || tag を返す
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]

    return TOKEN_DELIMITER.join(
        [
            TOKEN_VERSION,
            metadata_segment,
            _b64u_encode(nonce),
            _b64u_encode(ciphertext),
            _b64u_encode(tag),
        ]
    )


def decode(
    token: str,
    keys: TokenKeys,
    *,
    audience: Optional[str] = None,
    now: Optional[int] = None,
) -> TokenPayload:
    """
    トークンを検証・復号して TokenPayload を返す。

    :param audience: 指定した場合、メタデータの aud と一致しなければ AudienceMismatch
    :param now: 期限判定に使う現在時刻（epoch ミリ秒）。テスト用。
    :raises MalformedToken: 区切り数・バージョン・base64url の不正
    :raises AuthenticationFailed: 認証タグ不一致（改ざん / 鍵違い）
    :raises AudienceMismatch: 用途タグ不一致
    :raises Expired: expiresAt を過ぎている
    """
    if not isinstance(token, str) or not token:
        raise MalformedToken("Token is empty.")

    segments = token.split(TOKEN_DELIMITER)
    if len(segments) != SEGMENT_COUNT:
        raise MalformedToken("Unexpected token segment count.")

    version, metadata_segment, nonce_segment, ciphertext_segment, tag_segment = segments
    if version != TOKEN_VERSION:
        raise MalformedToken("Unsupported token version.")

    metadata_bytes = _b64u_decode(metadata_segment)
    nonce = _b64u_decode(nonce_segment)
    ciphertext = _b64u_decode(ciphertext_segment)
    tag = _b64u_decode(tag_segment)

    if len(nonce) != NONCE_SIZE or len(tag) != TAG_SIZE:
        raise MalformedToken("Unexpected nonce or tag width.")

    try:
        plaintext = AESGCM(keys.encryption_key).decrypt(
            nonce,
            ciphertext + tag,
            _associated_data(version, metadata_segment),
        )
    except InvalidTag as exc:
        raise AuthenticationFailed("Token authentication failed.") from exc

    # ここから先は認証済みのバイト列だけを扱う
    try:
        metadata = TokenMetadata.model_validate_json(metadata_bytes)
        payload = TokenPayload.model_validate_json(plaintext)
    except ValidationError:
        raise MalformedToken("Authenticated token content is not a valid payload.") from None

    if metadata.ver != version:
        raise MalformedToken("Token metadata version does not match.")

    if audience is not None and (metadata.aud != audience or payload.audience != audience):
        raise AudienceMismatch("Token audience does not match.")

    if payload.is_expired(now if now is not None else now_ms()):
        raise Expired("Token has expired.")

    return payload


def fingerprint(token: str, keys: TokenKeys) -> str:
    """
    トークンを特定するための鍵付きハッシュ（先頭 16 hex）。

    ログにトークン本体を残さずに同一トークンを突き合わせるために使う。
    """
    digest = hmac.new(
        keys.authentication_key,
        token.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return digest[:16]
