# backend/notion_grid/notion/router.py

"""
グリッドウィジェット向けデータ取得の FastAPI ルーター定義。

- GET /grid
- GET /schema
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status

from notion_grid.credentials.dependencies import get_request_credentials
from notion_grid.credentials.schemas import NotionCredentials

from .client import NotionClientError
from .schemas import DatabaseSchemaResponse, GridResponse
from .service import GridService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notion"])


@lru_cache()
def get_grid_service() -> GridService:
    """
    GridService のシングルトンインスタンスを取得する。
    """
    return GridService()


@router.get(
    "/grid",
    response_model=GridResponse,
    summary="Notion DB をグリッド表示用の JSON に変換して返す",
)
def get_grid(
    credentials: NotionCredentials = Depends(get_request_credentials),
    service: GridService = Depends(get_grid_service),
) -> GridResponse:
    """
    リンクトークン（またはデフォルト設定）の DB からグリッド項目を返す。

    - 認証情報の解決失敗は Depends 側で 401 / 503
    - Notion 呼び出し失敗は 502（詳細はログ側で確認）
    """
    try:
        items = service.fetch_grid(credentials)
    except NotionClientError as exc:
        logger.warning("Notion query failed (source=%s): %s", credentials.source.value, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch items from Notion.",
        ) from exc

    return GridResponse(items=items, count=len(items))


@router.get(
    "/schema",
    response_model=DatabaseSchemaResponse,
    summary="Notion DB のプロパティ型一覧を返す",
)
def get_schema(
    credentials: NotionCredentials = Depends(get_request_credentials),
    service: GridService = Depends(get_grid_service),
) -> DatabaseSchemaResponse:
    """
    DB 設定確認用。プロパティ名 -> 型名 のマップを返す。
    """
    try:
        return service.describe_database(credentials)
    except NotionClientError as exc:
        logger.warning("Notion database lookup failed (source=%s): %s", credentials.source.value, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to read database schema from Notion.",
        ) from exc
