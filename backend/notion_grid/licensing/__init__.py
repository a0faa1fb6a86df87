# backend/notion_grid/licensing/__init__.py

"""
ライセンス確認とウィジェット用リンクトークン発行のモジュール群。

- store: licenses / widgets テーブルへのアクセス（Supabase）
- service: アクティベーション処理
- router: POST /activate
"""
