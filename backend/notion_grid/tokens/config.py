# backend/notion_grid/tokens/config.py

"""
トークン鍵と発行設定をまとめるモジュール。

鍵はプロセス起動時に一度だけ読み込み、以降は変更しない。
どちらかの鍵が欠けている場合は起動時エラーとし、リクエスト単位のエラーにはしない。
"""

import base64
import binascii
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Tuple

from notion_grid.utils.config import get_env, get_env_int, get_env_list

from .errors import TokenKeyError

KEY_LENGTH = 32
BASE64URL_PREFIX = "base64:"


@dataclass(frozen=True)
class TokenKeys:
    """
    AES-256-GCM 用の暗号鍵と、フィンガープリント用の認証鍵のペア。

    2 つの鍵は互いに独立していること（同一の鍵は拒否する）。
    """

    encryption_key: bytes = field(repr=False)
    authentication_key: bytes = field(repr=False)

    def __post_init__(self) -> None:
        for name in ("encryption_key", "authentication_key"):
            value = getattr(self, name)
            if not isinstance(value, (bytes, bytearray)) or len(value) != KEY_LENGTH:
                raise TokenKeyError(f"{name} must be exactly {KEY_LENGTH} bytes.")
            # 読み込み後に呼び出し元のバッファを書き換えられないよう bytes にコピーする
            object.__setattr__(self, name, bytes(value))
        if self.encryption_key == self.authentication_key:
            raise TokenKeyError("encryption_key and authentication_key must be independent.")


@dataclass(frozen=True)
class TokenSettings:
    """トークン発行・受け取りに関する設定値。"""

    ttl_days: int = 0
    legacy_query_params: Tuple[str, ...] = ()


def decode_key_material(name: str, raw: str) -> bytes:
    """
    環境変数の鍵文字列をバイト列に変換する。

    - "base64:" 接頭辞付き → base64url（パディング省略可）
    - それ以外 → 標準 base64
    """
    try:
        if raw.startswith(BASE64URL_PREFIX):
            body = raw[len(BASE64URL_PREFIX):]
            return base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TokenKeyError(f"{name} is not valid base64.") from exc


@lru_cache()
def get_token_keys() -> TokenKeys:
    """
    環境変数から鍵ペアを読み込む。

    必須:
      - ENC_KEY_32B  (AES-256-GCM 暗号鍵)
      - HMAC_KEY_32B (認証鍵)
    """
    encryption_key = decode_key_material("ENC_KEY_32B", get_env("ENC_KEY_32B"))
    authentication_key = decode_key_material("HMAC_KEY_32B", get_env("HMAC_KEY_32B"))

    try:
        return TokenKeys(
            encryption_key=encryption_key,
            authentication_key=authentication_key,
        )
    except TokenKeyError as exc:
        raise TokenKeyError(f"Invalid token key configuration: {exc}") from exc


@lru_cache()
def get_token_settings() -> TokenSettings:
    """
    任意:
      - WIDGET_TOKEN_TTL_DAYS      (0 or 未設定 = 無期限)
      - WIDGET_TOKEN_LEGACY_PARAMS (旧クエリパラメータ名、カンマ区切り)
    """
    ttl_days = max(get_env_int("WIDGET_TOKEN_TTL_DAYS", default=0), 0)
    return TokenSettings(
        ttl_days=ttl_days,
        legacy_query_params=tuple(get_env_list("WIDGET_TOKEN_LEGACY_PARAMS")),
    )
