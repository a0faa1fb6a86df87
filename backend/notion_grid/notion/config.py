# backend/notion_grid/notion/config.py

"""
Notion 連携に必要な設定値をまとめるモジュール。

API の接続先とは別に、トークン無しのリクエストで使う
デフォルト認証情報（単一顧客運用向け）もここで読み込む。
"""

from dataclasses import dataclass
from functools import lru_cache

from notion_grid.credentials.schemas import CredentialSource, NotionCredentials
from notion_grid.utils.config import get_env


@dataclass(frozen=True)
class NotionConfig:
    """Notion API 用の設定値コンテナ。"""

    api_base_url: str
    api_version: str


@lru_cache()
def get_notion_config() -> NotionConfig:
    """
    環境変数から Notion API 設定を読み込む。

    任意:
      - NOTION_API_BASE_URL (デフォルト: https://api.notion.com/v1)
      - NOTION_API_VERSION   (デフォルト: 2022-06-28)
    """
    api_base_url = get_env(
        "NOTION_API_BASE_URL",
        default="https://api.notion.com/v1",
        required=False,
    )
    api_version = get_env(
        "NOTION_API_VERSION",
        default="2022-06-28",
        required=False,
    )

    return NotionConfig(
        api_base_url=api_base_url.rstrip("/"),
        api_version=api_version,
    )


@lru_cache()
def get_default_credentials() -> NotionCredentials:
    """
    プロセス全体のデフォルト認証情報を読み込む。

    いずれも任意（未設定なら不完全な NotionCredentials を返す）:
      - NOTION_TOKEN
      - NOTION_DATABASE_ID
      - BIO_DATABASE_ID
    """
    return NotionCredentials(
        secret=get_env("NOTION_TOKEN", required=False),
        primary_resource_id=get_env("NOTION_DATABASE_ID", required=False),
        secondary_resource_id=get_env("BIO_DATABASE_ID", required=False),
        source=CredentialSource.DEFAULTS,
    )
