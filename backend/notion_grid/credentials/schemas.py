# backend/notion_grid/credentials/schemas.py

"""
リクエスト単位で解決される Notion 認証情報の型定義。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


class CredentialSource(str, Enum):
    """認証情報の出所。"""

    TOKEN = "token"
    DEFAULTS = "defaults"


@dataclass(frozen=True)
class NotionCredentials:
    """
    データ取得レイヤに渡す (secret, primary, secondary) の組。

    secret は repr に含めない。
    """

    secret: Optional[str] = field(default=None, repr=False)
    primary_resource_id: Optional[str] = None
    secondary_resource_id: Optional[str] = None
    source: CredentialSource = CredentialSource.DEFAULTS

    @property
    def is_complete(self) -> bool:
        return bool(self.secret) and bool(self.primary_resource_id)


@dataclass(frozen=True)
class CredentialRequest:
    """
    Resolver に渡すリクエストの最小表現。

    FastAPI の Request に依存しないよう、クエリとヘッダだけを持つ。
    ヘッダ名は大文字小文字を区別せずに引けるマッピングを想定する
    （素の dict の場合は小文字キーで渡すこと）。
    """

    query_params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
