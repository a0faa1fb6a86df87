# backend/notion_grid/__init__.py
"""
Notion Grid backend application package.

This package contains:
- main: FastAPI application entrypoint
- tokens: link token codec (AES-256-GCM)
- credentials: per-request Notion credential resolution
- notion: Notion integration modules (grid feed, database schema)
- licensing: license check and widget activation
"""
