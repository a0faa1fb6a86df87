# backend/notion_grid/credentials/__init__.py

"""
リクエスト単位の認証情報解決モジュール群。

- schemas: NotionCredentials / CredentialRequest
- resolver: トークン or デフォルト設定から認証情報を決定する
- dependencies: FastAPI の Depends 用ラッパー（HTTP 境界でのエラー変換）
"""

from .resolver import (
    TOKEN_QUERY_PARAM,
    ConfigurationMissing,
    CredentialsRejected,
    extract_token,
    resolve,
)
from .schemas import CredentialRequest, CredentialSource, NotionCredentials

__all__ = [
    "TOKEN_QUERY_PARAM",
    "ConfigurationMissing",
    "CredentialRequest",
    "CredentialSource",
    "CredentialsRejected",
    "NotionCredentials",
    "extract_token",
    "resolve",
]
