# backend/notion_grid/main.py

"""
バックエンドアプリケーションのエントリーポイント。

主な責務:
- /activate: ライセンスを確認してウィジェット用リンクトークンを発行する
- /grid, /schema: リンクトークン（or デフォルト設定）の Notion DB を読み出す
- /health: 設定の有無だけを返すヘルスチェック
"""

import os
from datetime import datetime, timezone

from fastapi import FastAPI, Response

from notion_grid.licensing.router import router as licensing_router
from notion_grid.notion.router import router as notion_router
from notion_grid.tokens import get_token_keys

HEALTH_ENV_VARS = (
    "NOTION_TOKEN",
    "NOTION_DATABASE_ID",
    "BIO_DATABASE_ID",
    "ENC_KEY_32B",
    "HMAC_KEY_32B",
)


def create_app() -> FastAPI:
    """
    FastAPI アプリケーションファクトリ。

    トークン鍵はここで一度だけ読み込む。
    鍵が欠けている / 不正な場合は例外を投げ、トラフィックを受け付けない。
    """
    get_token_keys()

    app = FastAPI(title="Notion Grid Backend")

    # ルーター登録
    app.include_router(licensing_router)
    app.include_router(notion_router)

    @app.get("/health", tags=["health"])
    def health_check(response: Response) -> dict:
        """
        簡易ヘルスチェックエンドポイント。
        環境変数は「設定されているか」だけを返し、値は出さない。
        """
        response.headers["Cache-Control"] = "no-store"
        return {
            "ok": True,
            "env": {name: bool(os.getenv(name)) for name in HEALTH_ENV_VARS},
            "now": datetime.now(timezone.utc).isoformat(),
        }

    return app


# uvicorn 実行時のエントリーポイント
app = create_app()
