# backend/notion_grid/licensing/router.py

"""
アクティベーション用の FastAPI ルーター定義。

- POST /activate
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Request, status

from notion_grid.tokens import InvalidTokenPayload, get_token_keys, get_token_settings

from .config import get_site_base_url
from .schemas import ActivationRequest, ActivationResponse
from .service import ActivationService, LicenseNotFound
from .store import LicenseStoreError, SupabaseLicenseStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["licensing"])


@lru_cache()
def get_activation_service() -> ActivationService:
    """
    ActivationService のシングルトンインスタンスを取得する。

    NOTE:
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE が未設定の場合は EnvVarMissingError になる。
      - テストでは app.dependency_overrides で差し替える。
    """
    return ActivationService(
        store=SupabaseLicenseStore(),
        keys=get_token_keys(),
        settings=get_token_settings(),
    )


@router.post(
    "/activate",
    response_model=ActivationResponse,
    summary="ライセンスを有効化してウィジェット用リンクを発行する",
)
def activate(
    body: ActivationRequest,
    request: Request,
    service: ActivationService = Depends(get_activation_service),
) -> ActivationResponse:
    """
    - シークレット / DB ID が不正 → 422
    - ライセンスが見つからない / 無効 → 404
    - ライセンスストアの障害 → 502
    """
    base_url = get_site_base_url() or str(request.base_url)

    try:
        return service.activate(body, base_url=base_url)
    except InvalidTokenPayload as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Notion secret and database id are required.",
        ) from exc
    except LicenseNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="License not found or inactive",
        ) from exc
    except LicenseStoreError as exc:
        logger.warning("License store call failed during activation: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Activation failed. Please try again later.",
        ) from exc
