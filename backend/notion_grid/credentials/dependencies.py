# backend/notion_grid/credentials/dependencies.py

"""
FastAPI の Depends から使う認証情報解決ラッパー。

Resolver の型付き例外を、詳細を伏せた HTTP エラーに変換する。
失敗種別はログにだけ残し、レスポンスボディには出さない。
"""

import logging

from fastapi import HTTPException, Request, status

from notion_grid.notion.config import get_default_credentials
from notion_grid.tokens import get_token_keys, get_token_settings

from .resolver import ConfigurationMissing, CredentialsRejected, resolve
from .schemas import CredentialRequest, NotionCredentials

logger = logging.getLogger(__name__)

REJECTED_DETAIL = "Invalid or expired widget link."
NOT_CONFIGURED_DETAIL = "Widget is not configured."


def get_request_credentials(request: Request) -> NotionCredentials:
    """
    リクエストのクエリ / ヘッダから認証情報を解決する。

    - トークン不正 → 401（種別は伏せる）
    - トークン無し かつ デフォルト未設定 → 503
    """
    credential_request = CredentialRequest(
        query_params=request.query_params,
        headers=request.headers,
    )

    try:
        return resolve(
            credential_request,
            get_default_credentials(),
            get_token_keys(),
            legacy_query_params=get_token_settings().legacy_query_params,
        )
    except CredentialsRejected as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=REJECTED_DETAIL,
        ) from exc
    except ConfigurationMissing as exc:
        logger.error("Request without widget token and no default Notion credentials.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=NOT_CONFIGURED_DETAIL,
        ) from exc
