# backend/notion_grid/licensing/config.py

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from notion_grid.utils.config import get_env


@dataclass(frozen=True)
class LicenseStoreSettings:
    """
    ライセンスストア（Supabase / PostgREST）の接続設定。
    """

    base_url: str
    service_role_key: str
    timeout_seconds: float = 10.0


@lru_cache()
def get_license_store_settings() -> LicenseStoreSettings:
    """
    必須:
      - SUPABASE_URL
      - SUPABASE_SERVICE_ROLE（サーバ側専用キー。クライアントに渡さないこと）
    """
    return LicenseStoreSettings(
        base_url=get_env("SUPABASE_URL").rstrip("/"),
        service_role_key=get_env("SUPABASE_SERVICE_ROLE"),
    )


def get_site_base_url() -> Optional[str]:
    """
    ウィジェット URL の基点。未設定ならリクエストのホストから組み立てる。
    """
    value = get_env("SITE_BASE_URL", required=False)
    return value.rstrip("/") if value else None
