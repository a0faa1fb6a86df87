# backend/notion_grid/notion/service.py

"""
Notion クライアントとグリッド用スキーマをつなぐサービス層。

- 認証情報ごとに NotionClient を生成してデータベースを読む
- Notion API レスポンス → GridItem への変換
"""

from typing import Any, Callable, Dict, List, Optional

from notion_grid.credentials.schemas import NotionCredentials

from .client import NotionClient
from .schemas import DatabaseSchemaResponse, GridItem

DEFAULT_TITLE = "Sin título"
DEFAULT_PLATFORM = "Other"
GRID_PAGE_SIZE = 60
GRID_SORTS = [
    {"property": "Publish Date", "direction": "descending"},
    {"timestamp": "last_edited_time", "direction": "descending"},
]
VIDEO_SUFFIXES = (".mp4", ".mov")

ClientFactory = Callable[[NotionCredentials], NotionClient]


def _extract_plain_text(prop: Dict[str, Any]) -> Optional[str]:
    """
    Notion の title / rich_text プロパティから先頭のプレーンテキストを抽出する。
    """
    for key in ("title", "rich_text"):
        blocks = prop.get(key)
        if isinstance(blocks, list) and blocks:
            first = blocks[0]
            if isinstance(first, dict):
                text = first.get("plain_text")
                if isinstance(text, str) and text:
                    return text
    return None


def _extract_url(prop: Dict[str, Any]) -> Optional[str]:
    value = prop.get("url")
    if isinstance(value, str) and value:
        return value
    return None


def _file_url(file_obj: Any) -> Optional[str]:
    """
    Notion の file オブジェクト（files プロパティ要素 / page cover）から URL を取り出す。
    """
    if not isinstance(file_obj, dict):
        return None
    kind = "file" if file_obj.get("type") == "file" else "external"
    inner = file_obj.get(kind)
    if isinstance(inner, dict) and isinstance(inner.get("url"), str):
        return inner["url"]
    return None


def _extract_names(prop: Dict[str, Any]) -> List[str]:
    """
    multi_select / select プロパティから name の一覧を抽出する。
    """
    multi = prop.get("multi_select")
    if isinstance(multi, list):
        return [opt["name"] for opt in multi if isinstance(opt, dict) and opt.get("name")]

    select = prop.get("select")
    if isinstance(select, dict) and select.get("name"):
        return [select["name"]]
    return []


def _extract_status(prop: Dict[str, Any]) -> Optional[str]:
    for key in ("status", "select"):
        value = prop.get(key)
        if isinstance(value, dict) and isinstance(value.get("name"), str):
            return value["name"]
    return None


def _extract_checkbox(prop: Dict[str, Any]) -> bool:
    return prop.get("checkbox") is True


def _is_video_url(url: Optional[str]) -> bool:
    if not url:
        return False
    lowered = url.lower()
    return lowered.endswith(VIDEO_SUFFIXES) or "youtu" in lowered


def page_to_grid_item(page: Dict[str, Any]) -> GridItem:
    """
    Notion のページオブジェクト 1 件を GridItem に変換する。

    参照するプロパティ: Name / Link / Image / Platform / Status / Pinned
    Image が無い場合はページのカバー画像を使う。
    """
    properties: Dict[str, Any] = page.get("properties", {}) or {}

    title = _extract_plain_text(properties.get("Name", {}) or {}) or DEFAULT_TITLE
    link = _extract_url(properties.get("Link", {}) or {})

    files = (properties.get("Image", {}) or {}).get("files") or []
    image = _file_url(files[0]) if files else _file_url(page.get("cover"))

    platforms = _extract_names(properties.get("Platform", {}) or {}) or [DEFAULT_PLATFORM]

    return GridItem(
        id=page.get("id", ""),
        title=title,
        link=link,
        image=image,
        platform=platforms[0],
        platforms=platforms,
        status=_extract_status(properties.get("Status", {}) or {}),
        pinned=_extract_checkbox(properties.get("Pinned", {}) or {}),
        is_video=_is_video_url(image) or _is_video_url(link),
    )


def is_hidden(page: Dict[str, Any]) -> bool:
    properties: Dict[str, Any] = page.get("properties", {}) or {}
    return _extract_checkbox(properties.get("Hidden", {}) or {})


class GridService:
    """
    リクエストごとの認証情報で NotionClient を組み立て、
    アプリケーション層に扱いやすいモデルを返すサービス。
    """

    def __init__(self, client_factory: Optional[ClientFactory] = None) -> None:
        self._client_factory: ClientFactory = client_factory or NotionClient

    def fetch_grid(self, credentials: NotionCredentials) -> List[GridItem]:
        """
        メイン DB の全ページを取得し、非表示を除いた GridItem を返す。

        Pinned のものを先頭にする（それ以外の順序は Notion の並び順を保つ）。
        """
        client = self._client_factory(credentials)
        pages = client.query_all(
            credentials.primary_resource_id,
            {"page_size": GRID_PAGE_SIZE, "sorts": GRID_SORTS},
        )

        items = [page_to_grid_item(page) for page in pages if not is_hidden(page)]
        items.sort(key=lambda item: not item.pinned)
        return items

    def describe_database(self, credentials: NotionCredentials) -> DatabaseSchemaResponse:
        """
        メイン DB のプロパティ名と型の一覧を返す。
        """
        client = self._client_factory(credentials)
        data = client.retrieve_database(credentials.primary_resource_id)

        title_blocks = data.get("title") or []
        title = "".join(
            block.get("plain_text", "") for block in title_blocks if isinstance(block, dict)
        ) or None

        properties = {
            name: prop.get("type", "unknown")
            for name, prop in (data.get("properties") or {}).items()
            if isinstance(prop, dict)
        }
        return DatabaseSchemaResponse(id=data.get("id"), title=title, properties=properties)
