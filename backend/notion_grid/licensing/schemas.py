# backend/notion_grid/licensing/schemas.py

"""
アクティベーション API とライセンスストアのスキーマ定義。

※ notion_secret は SecretStr で受け取り、レスポンスやログに出さないこと。
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

# licenses.id は int8 の identity 列 / uuid 文字列のどちらもありうる
LicenseId = Union[int, str]


class LicenseRecord(BaseModel):
    """licenses テーブルの 1 行（必要な列だけ）。"""

    model_config = ConfigDict(extra="ignore")

    id: LicenseId
    email: str
    status: str
    plan: Optional[str] = None
    order_id: Optional[str] = None


class WidgetRecord(BaseModel):
    """widgets テーブルの 1 行。"""

    model_config = ConfigDict(extra="ignore")

    id: str
    license_id: LicenseId
    email: str
    db_id: str
    bio_db_id: Optional[str] = None


class ActivationRequest(BaseModel):
    """
    POST /activate のリクエストボディ。
    """

    email: str = Field(..., min_length=1, description="購入時のメールアドレス")
    license: str = Field(..., min_length=1, description="ライセンス ID")
    notion_secret: SecretStr = Field(..., description="顧客の Notion インテグレーションシークレット")
    db_id: str = Field(..., min_length=1, description="グリッド表示に使う DB ID")
    bio_db_id: Optional[str] = Field(None, description="プロフィール用 DB ID（任意）")

    @field_validator("email", "license", "db_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("notion_secret")
    @classmethod
    def _secret_not_blank(cls, value: SecretStr) -> SecretStr:
        # エラーメッセージに値を含めない
        if not value.get_secret_value().strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("bio_db_id")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


class ActivationResponse(BaseModel):
    """
    POST /activate のレスポンス。

    token はここでのみクライアントに返す（サーバ側では保存しない）。
    """

    ok: bool = True
    widget_url: str = Field(..., description="埋め込み用 URL（?token= 付き）")
    token: str
    wid: str = Field(..., description="ウィジェット ID（トークンの相関 ID と同じ）")
