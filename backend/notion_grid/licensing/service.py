# backend/notion_grid/licensing/service.py

"""
アクティベーション（ライセンス確認 → ウィジェット登録 → トークン発行）のサービス層。
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable, Optional
from urllib.parse import urlencode

from pydantic import ValidationError

from notion_grid.credentials.resolver import TOKEN_QUERY_PARAM
from notion_grid.tokens import InvalidTokenPayload, TokenKeys, TokenPayload, encode
from notion_grid.tokens.config import TokenSettings
from notion_grid.tokens.schemas import now_ms

from .schemas import ActivationRequest, ActivationResponse, WidgetRecord
from .store import LicenseStore

logger = logging.getLogger(__name__)

WIDGET_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-"
WIDGET_ID_LENGTH = 6
DAY_MS = 24 * 60 * 60 * 1000


class LicenseNotFound(LookupError):
    """ライセンスが存在しない / email 不一致 / 無効。"""


def generate_widget_id(length: int = WIDGET_ID_LENGTH) -> str:
    return "".join(secrets.choice(WIDGET_ID_ALPHABET) for _ in range(length))


def build_widget_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/?{urlencode({TOKEN_QUERY_PARAM: token})}"


class ActivationService:
    """
    有効なライセンスに対してウィジェットを登録し、リンクトークンを発行する。

    ライセンスが見つからない / 無効な場合はトークンを発行する前に LicenseNotFound を投げる。
    """

    def __init__(
        self,
        store: LicenseStore,
        keys: TokenKeys,
        settings: Optional[TokenSettings] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._keys = keys
        self._settings = settings or TokenSettings()
        self._clock = clock

    def _build_payload(self, request: ActivationRequest) -> TokenPayload:
        issued_at = self._clock()
        expires_at = None
        if self._settings.ttl_days > 0:
            expires_at = issued_at + self._settings.ttl_days * DAY_MS

        try:
            return TokenPayload(
                secret=request.notion_secret.get_secret_value(),
                primary_resource_id=request.db_id,
                secondary_resource_id=request.bio_db_id or None,
                issued_at=issued_at,
                expires_at=expires_at,
            )
        except ValidationError:
            raise InvalidTokenPayload("Notion secret and database id are required.") from None

    def activate(self, request: ActivationRequest, *, base_url: str) -> ActivationResponse:
        """
        :param base_url: ウィジェット URL の基点（SITE_BASE_URL or リクエストのホスト）
        :raises InvalidTokenPayload: シークレット / DB ID が空の場合（ストアには何も書かない）
        :raises LicenseNotFound: ライセンスが有効でない場合
        :raises LicenseStoreError: ストア呼び出しに失敗した場合
        """
        # ウィジェット行を書き込む前にペイロードを確定させる
        payload = self._build_payload(request)

        email = request.email.strip().lower()
        license_record = self._store.get_active_license(email, request.license)
        if license_record is None:
            raise LicenseNotFound("License not found or inactive")

        widget = self._store.create_widget(
            WidgetRecord(
                id=generate_widget_id(),
                license_id=license_record.id,
                email=license_record.email,
                db_id=payload.primary_resource_id,
                bio_db_id=payload.secondary_resource_id,
            )
        )

        token = encode(
            payload,
            self._keys,
            correlation_id=widget.id,
            license_id=str(license_record.id),
        )

        logger.info("Widget %s activated for license %s.", widget.id, license_record.id)

        return ActivationResponse(
            widget_url=build_widget_url(base_url, token),
            token=token,
            wid=widget.id,
        )
