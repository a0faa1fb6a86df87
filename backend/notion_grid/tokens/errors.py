# backend/notion_grid/tokens/errors.py

"""
トークンの生成・検証で使う例外定義。

デコード失敗はすべて TokenError のサブクラスとして投げる。
メッセージにはトークン本体や鍵を含めないこと。
"""

from enum import Enum


class TokenErrorKind(str, Enum):
    """デコード失敗の種別。ログにはこの値だけを残す。"""

    MALFORMED = "malformed"
    AUTHENTICATION_FAILED = "authentication_failed"
    EXPIRED = "expired"
    AUDIENCE_MISMATCH = "audience_mismatch"


class TokenError(Exception):
    """トークンのデコード失敗全般の基底例外。"""

    kind: TokenErrorKind


class MalformedToken(TokenError):
    """区切り数・バージョン・base64url など構造上の不正。"""

    kind = TokenErrorKind.MALFORMED


class AuthenticationFailed(TokenError):
    """認証タグ不一致。改ざん or 鍵違いとして扱う。"""

    kind = TokenErrorKind.AUTHENTICATION_FAILED


class Expired(TokenError):
    """expiresAt を過ぎたトークン。"""

    kind = TokenErrorKind.EXPIRED


class AudienceMismatch(TokenError):
    """呼び出し側が要求する audience と一致しない。"""

    kind = TokenErrorKind.AUDIENCE_MISMATCH


class InvalidTokenPayload(ValueError):
    """encode に渡されたペイロードが必須項目を満たさない。"""


class TokenKeyError(RuntimeError):
    """鍵素材が欠けている / 長さが不正など、起動時に致命的な設定エラー。"""
