# backend/notion_grid/tokens/schemas.py

"""
リンクトークンに載せるデータのスキーマ定義。

- TokenPayload: 暗号化される機密ブロック（Notion シークレット + DB ID + 期限）
- TokenMetadata: 平文で見えるメタデータ（バージョン / audience / 相関 ID）

※ TokenPayload はログや永続化ストレージに平文で出してはならない。
  repr からも secret は除外している。
"""

from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_AUDIENCE = "widget"


def now_ms() -> int:
    """現在時刻を epoch ミリ秒で返す。"""
    return int(time.time() * 1000)


class TokenPayload(BaseModel):
    """
    トークンの機密ブロック。

    ワイヤ上のキーは camelCase（secret / primaryResourceId / ...）。
    Python 側ではフィールド名でもエイリアスでも構築できる。
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    secret: str = Field(..., repr=False, description="Notion インテグレーションのシークレット")
    primary_resource_id: str = Field(
        ...,
        alias="primaryResourceId",
        description="グリッド表示に使うメイン DB の ID",
    )
    secondary_resource_id: Optional[str] = Field(
        None,
        alias="secondaryResourceId",
        description="プロフィール等に使う補助 DB の ID（任意）",
    )
    issued_at: int = Field(
        default_factory=now_ms,
        alias="issuedAt",
        description="発行時刻（epoch ミリ秒）",
    )
    expires_at: Optional[int] = Field(
        None,
        alias="expiresAt",
        description="有効期限（epoch ミリ秒）。None の場合は無期限。",
    )
    audience: str = Field(DEFAULT_AUDIENCE, description="用途タグ（例: widget）")

    @field_validator("secret", "primary_resource_id", "audience")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value

    def is_expired(self, at_ms: int) -> bool:
        return self.expires_at is not None and self.expires_at <= at_ms


class TokenMetadata(BaseModel):
    """
    トークン先頭に平文で載るメタデータ。

    機密情報は含めないこと。ver / aud は AEAD の関連データとして認証対象になる。
    """

    model_config = ConfigDict(frozen=True)

    ver: str = Field(..., description="トークン形式のバージョン")
    aud: str = Field(..., description="用途タグ")
    cid: Optional[str] = Field(None, description="相関 ID（発行時のウィジェット ID など）")
    lic: Optional[str] = Field(None, description="発行元のライセンス ID（ライセンス単位の失効用）")
