# backend/notion_grid/notion/__init__.py

"""
Notion 連携用モジュール群。

主な責務:
- 解決済みの認証情報で Notion API からデータベースを読み取る
- ページをグリッドウィジェット向けの GridItem に変換する
"""
