# backend/notion_grid/notion/client.py

"""
Notion API との通信を担当するクライアントモジュール。

認証情報はグローバル設定ではなく、リクエストごとに解決された
NotionCredentials をコンストラクタで受け取る。
"""

from typing import Any, Dict, List, Optional

import httpx

from notion_grid.credentials.schemas import NotionCredentials

from .config import NotionConfig, get_notion_config

# 1 回の /grid で取得する最大件数
MAX_QUERY_RESULTS = 200


class NotionClientError(RuntimeError):
    """Notion クライアント全般の例外。"""


class NotionAuthError(NotionClientError):
    """認証・権限関連のエラー。"""


class NotionAPIError(NotionClientError):
    """その他 Notion API 呼び出し時のエラー。"""


class NotionClient:
    """
    Notion API の薄いラッパークライアント。

    - データベースの query（ページング込み）
    - データベース定義の取得
    """

    def __init__(
        self,
        credentials: NotionCredentials,
        config: Optional[NotionConfig] = None,
        timeout: float = 10.0,
    ) -> None:
        if not credentials.is_complete:
            raise NotionClientError("Notion credentials are incomplete.")
        self.credentials = credentials
        self.config = config or get_notion_config()
        self._timeout = timeout

    def _build_headers(self) -> Dict[str, str]:
        """
        Notion API 呼び出しに必要なヘッダーを構築。
        """
        return {
            "Authorization": f"Bearer {self.credentials.secret}",
            "Notion-Version": self.config.api_version,
            "Content-Type": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        """
        HTTP レスポンスコードに応じて適切な例外を投げる。
        """
        if response.status_code == 401:
            raise NotionAuthError("Unauthorized. Check the Notion integration secret.")
        if response.status_code == 403:
            raise NotionAuthError("Forbidden. Check Notion integration permissions.")
        if response.status_code >= 400:
            raise NotionAPIError(
                f"Notion API error: {response.status_code} {response.text}"
            )

    def query_database(self, database_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        データベースを 1 ページ分 query し、レスポンス JSON をそのまま返す。
        """
        url = f"{self.config.api_base_url}/databases/{database_id}/query"

        try:
            response = httpx.post(
                url,
                headers=self._build_headers(),
                json=body,
                timeout=self._timeout,
            )
        except httpx.RequestError as exc:
            raise NotionClientError(f"Failed to call Notion API: {exc}") from exc

        self._raise_for_status(response)

        data = response.json()
        if not isinstance(data.get("results", []), list):
            raise NotionAPIError("Unexpected Notion API response format: 'results' is not a list.")
        return data

    def query_all(
        self,
        database_id: str,
        body: Dict[str, Any],
        max_results: int = MAX_QUERY_RESULTS,
    ) -> List[Dict[str, Any]]:
        """
        next_cursor を辿って全ページを取得する。

        max_results 件に達した時点で打ち切る（超過分は最後のページ分だけ含まれうる）。
        返り値は Notion API の生のページオブジェクトのリスト。
        """
        results: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            page_body = dict(body)
            if cursor:
                page_body["start_cursor"] = cursor

            data = self.query_database(database_id, page_body)
            results.extend(data.get("results", []))

            cursor = data.get("next_cursor") if data.get("has_more") else None
            if not cursor or len(results) >= max_results:
                break

        return results

    def retrieve_database(self, database_id: str) -> Dict[str, Any]:
        """
        データベース定義（タイトル・プロパティ型）を取得する。
        """
        url = f"{self.config.api_base_url}/databases/{database_id}"

        try:
            response = httpx.get(
                url,
                headers=self._build_headers(),
                timeout=self._timeout,
            )
        except httpx.RequestError as exc:
            raise NotionClientError(f"Failed to call Notion API: {exc}") from exc

        self._raise_for_status(response)
        return response.json()
