# backend/notion_grid/licensing/store.py

"""
ライセンス / ウィジェットの永続化ストア。

アクティベーションの前提となる「有効なライセンスかどうか」の判定はここで行う。
実装は Supabase の PostgREST エンドポイントを httpx で直接叩く。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import LicenseStoreSettings, get_license_store_settings
from .schemas import LicenseRecord, WidgetRecord

ACTIVE_STATUS = "active"

RecordT = TypeVar("RecordT", bound=BaseModel)


class LicenseStoreError(RuntimeError):
    """ライセンスストア呼び出し全般の例外。"""


def _parse_record(model: Type[RecordT], row: Any) -> RecordT:
    """
    ストアの 1 行をモデルに変換する。想定外の形はストア側の異常として扱う。
    """
    try:
        return model.model_validate(row)
    except ValidationError as exc:
        raise LicenseStoreError(
            f"Unexpected {model.__name__} row from license store."
        ) from exc


class LicenseStore(Protocol):
    """
    ライセンスストアの最小インターフェース。
    """

    def get_active_license(self, email: str, license_id: str) -> Optional[LicenseRecord]:  # pragma: no cover - Protocol
        ...

    def create_widget(self, widget: WidgetRecord) -> WidgetRecord:  # pragma: no cover - Protocol
        ...


class SupabaseLicenseStore:
    """
    Supabase（PostgREST）上の licenses / widgets テーブルを扱うストア。
    """

    def __init__(self, settings: Optional[LicenseStoreSettings] = None) -> None:
        self._settings = settings or get_license_store_settings()

    def _build_headers(self) -> Dict[str, str]:
        key = self._settings.service_role_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _table_url(self, table: str) -> str:
        return f"{self._settings.base_url}/rest/v1/{table}"

    def _parse_rows(self, response: httpx.Response) -> List[Dict[str, Any]]:
        if response.status_code // 100 != 2:
            raise LicenseStoreError(f"License store error: status_code={response.status_code}")
        try:
            rows = response.json()
        except ValueError as exc:
            raise LicenseStoreError("License store returned a non-JSON response.") from exc
        if not isinstance(rows, list):
            raise LicenseStoreError("Unexpected license store response format.")
        return rows

    def get_active_license(self, email: str, license_id: str) -> Optional[LicenseRecord]:
        """
        email / id が一致し、status が active のライセンスを 1 件返す。無ければ None。
        """
        params = {
            "select": "*",
            "id": f"eq.{license_id}",
            "email": f"eq.{email}",
            "status": f"eq.{ACTIVE_STATUS}",
            "limit": "1",
        }
        try:
            response = httpx.get(
                self._table_url("licenses"),
                headers=self._build_headers(),
                params=params,
                timeout=self._settings.timeout_seconds,
            )
        except httpx.RequestError as exc:
            raise LicenseStoreError(f"Failed to call license store: {exc}") from exc

        rows = self._parse_rows(response)
        if not rows:
            return None
        return _parse_record(LicenseRecord, rows[0])

    def create_widget(self, widget: WidgetRecord) -> WidgetRecord:
        """
        widgets テーブルに 1 行追加し、保存された行を返す。
        """
        headers = self._build_headers()
        headers["Prefer"] = "return=representation"

        try:
            response = httpx.post(
                self._table_url("widgets"),
                headers=headers,
                json=widget.model_dump(),
                timeout=self._settings.timeout_seconds,
            )
        except httpx.RequestError as exc:
            raise LicenseStoreError(f"Failed to call license store: {exc}") from exc

        rows = self._parse_rows(response)
        if not rows:
            raise LicenseStoreError("License store did not return the created widget.")
        return _parse_record(WidgetRecord, rows[0])
