# backend/notion_grid/credentials/resolver.py

"""
リクエストごとの Notion 認証情報を決定する Resolver。

状態遷移（1 リクエスト単位）:
    トークン無し       -> デフォルト設定を使う（不完全なら ConfigurationMissing）
    トークン有り       -> デコード -> 成功: トークンの値だけを使う
                                    -> 失敗: CredentialsRejected

トークンのデコードに失敗した場合にデフォルト設定へフォールバックしてはならない。
壊れたスコープ付きトークンに対して既定テナントのデータを返すことになるため。
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from notion_grid.tokens import TokenError, TokenErrorKind, TokenKeys, decode, fingerprint
from notion_grid.tokens.schemas import DEFAULT_AUDIENCE

from .schemas import CredentialRequest, CredentialSource, NotionCredentials

logger = logging.getLogger(__name__)

# フロントエンドとの契約。変更する場合は旧名を legacy_query_params に残すこと。
TOKEN_QUERY_PARAM = "token"
AUTHORIZATION_HEADER = "authorization"
BEARER_SCHEME = "bearer"


class ConfigurationMissing(RuntimeError):
    """トークンが無く、デフォルトの認証情報も揃っていない。"""


class CredentialsRejected(Exception):
    """
    トークンが提示されたがデコードに失敗した。

    kind / token_fingerprint は内部ログ用。クライアントへのレスポンスには出さない。
    """

    def __init__(self, kind: TokenErrorKind, token_fingerprint: str) -> None:
        super().__init__(f"Widget token rejected: {kind.value}")
        self.kind = kind
        self.token_fingerprint = token_fingerprint


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title())
    return value


def extract_token(
    request: CredentialRequest,
    *,
    legacy_query_params: Sequence[str] = (),
) -> Optional[str]:
    """
    リクエストから候補トークンを 1 つだけ取り出す。

    優先順位（固定）:
      1. クエリパラメータ token
      2. 旧クエリパラメータ名（legacy_query_params の順）
      3. Authorization: Bearer <token>
    パラメータ / Bearer が付いていれば値が空でも「提示された」とみなし、
    空文字を返す（デコード側で MalformedToken になる）。
    """
    for name in (TOKEN_QUERY_PARAM, *legacy_query_params):
        value = request.query_params.get(name)
        if value is not None:
            return value.strip()

    header = _get_header(request.headers, AUTHORIZATION_HEADER)
    if header:
        scheme, _, credentials = header.strip().partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            return credentials.strip()

    return None


def resolve(
    request: CredentialRequest,
    defaults: NotionCredentials,
    keys: TokenKeys,
    *,
    audience: str = DEFAULT_AUDIENCE,
    legacy_query_params: Sequence[str] = (),
    now: Optional[int] = None,
) -> NotionCredentials:
    """
    1 リクエスト分の有効な認証情報を返す。

    :raises ConfigurationMissing: トークン無し かつ defaults が不完全
    :raises CredentialsRejected: トークン有り かつ デコード失敗
    """
    token = extract_token(request, legacy_query_params=legacy_query_params)

    if token is None:
        if not defaults.is_complete:
            raise ConfigurationMissing("No widget token and no default Notion credentials.")
        return defaults

    try:
        payload = decode(token, keys, audience=audience, now=now)
    except TokenError as exc:
        token_fingerprint = fingerprint(token, keys)
        logger.warning(
            "Widget token rejected: kind=%s fingerprint=%s",
            exc.kind.value,
            token_fingerprint,
        )
        raise CredentialsRejected(exc.kind, token_fingerprint) from exc

    return NotionCredentials(
        secret=payload.secret,
        primary_resource_id=payload.primary_resource_id,
        secondary_resource_id=payload.secondary_resource_id,
        source=CredentialSource.TOKEN,
    )
