# backend/notion_grid/tokens/__init__.py

"""
ウィジェット用リンクトークンのモジュール群。

主な責務:
- 顧客の Notion シークレットと DB ID を暗号化して URL セーフな文字列にする
- 受け取ったトークンを検証・復号し、改ざん / 期限切れ / 用途違いを検出する

構成:
- schemas: TokenPayload / TokenMetadata
- codec: encode / decode / fingerprint
- errors: デコード失敗の型付き例外
- config: プロセス全体で共有する鍵と設定
"""

from .codec import TOKEN_DELIMITER, TOKEN_VERSION, decode, encode, fingerprint
from .config import TokenKeys, get_token_keys, get_token_settings
from .errors import (
    AudienceMismatch,
    AuthenticationFailed,
    Expired,
    InvalidTokenPayload,
    MalformedToken,
    TokenError,
    TokenErrorKind,
    TokenKeyError,
)
from .schemas import TokenMetadata, TokenPayload

__all__ = [
    "TOKEN_DELIMITER",
    "TOKEN_VERSION",
    "AudienceMismatch",
    "AuthenticationFailed",
    "Expired",
    "InvalidTokenPayload",
    "MalformedToken",
    "TokenError",
    "TokenErrorKind",
    "TokenKeyError",
    "TokenKeys",
    "TokenMetadata",
    "TokenPayload",
    "decode",
    "encode",
    "fingerprint",
    "get_token_keys",
    "get_token_settings",
]
