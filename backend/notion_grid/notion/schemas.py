# backend/notion_grid/notion/schemas.py

"""
Notion から取得したデータをグリッドウィジェット向けに扱うスキーマ定義。
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GridItem(BaseModel):
    """
    グリッドの 1 タイルを表現するモデル。

    isVideo はフロントエンドとの互換のため camelCase で出力する。
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Notion ページ ID")
    title: str = Field(..., description="タイトル（無ければ既定文言）")
    link: Optional[str] = Field(None, description="投稿のリンク先 URL")
    image: Optional[str] = Field(None, description="サムネイル画像 URL")
    platform: str = Field("Other", description="platforms の先頭")
    platforms: List[str] = Field(default_factory=list, description="投稿先プラットフォーム")
    status: Optional[str] = Field(None, description="Status（status / select 値）")
    pinned: bool = Field(False, description="先頭固定表示するか")
    is_video: bool = Field(False, alias="isVideo", description="動画として扱うか")


class GridResponse(BaseModel):
    """
    /grid のレスポンス全体。
    """

    ok: bool = True
    items: List[GridItem]
    count: int


class DatabaseSchemaResponse(BaseModel):
    """
    /schema のレスポンス。プロパティ名 -> 型名 のマップを返す。
    """

    id: Optional[str] = Field(None, description="データベース ID")
    title: Optional[str] = Field(None, description="データベースのタイトル（プレーンテキスト）")
    properties: Dict[str, str] = Field(default_factory=dict)
