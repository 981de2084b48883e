"""
Supabase client.

Thin wrapper over the two hosted HTTP surfaces the app uses:
  1. GoTrue (``/auth/v1``)  sign in, sign up, sign out, current user
  2. PostgREST (``/rest/v1``)  table selects and updates

The client keeps the access token of the last successful sign-in and sends
it as the bearer token on subsequent calls; otherwise the anon key is used.
"""

from __future__ import annotations

import logging
from typing import Any

from oncosaferx.config import get_settings
from oncosaferx.constants import SUPABASE_AUTH_PATH, SUPABASE_REST_PATH
from oncosaferx.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    DataSourceError,
    RequestContext,
)

logger = logging.getLogger("oncosaferx.data_sources.supabase")


class SupabaseClient(BaseClient):
    """Client for a Supabase project's auth and REST APIs."""

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        super().__init__(config)
        settings = get_settings()
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.supabase_anon_key
        self.access_token: str | None = None
        self.refresh_token: str | None = None

    @property
    def _source_name(self) -> str:
        return "supabase"

    # -- Auth -----------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a session. Returns the GoTrue session payload."""
        ctx = RequestContext(source=self._source_name, method="sign_in_with_password")
        data = await self._rest_post(
            self._auth_url("token"),
            {"email": email, "password": password},
            params={"grant_type": "password"},
            headers=self._headers(),
            context=ctx,
        )
        self._store_session(data)
        return data

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Create an auth user.

        The payload carries a session only when email confirmation is off.
        """
        ctx = RequestContext(source=self._source_name, method="sign_up")
        data = await self._rest_post(
            self._auth_url("signup"),
            {"email": email, "password": password, "data": metadata or {}},
            headers=self._headers(),
            context=ctx,
        )
        if data and data.get("access_token"):
            self._store_session(data)
        return data

    async def sign_out(self) -> None:
        """Revoke the current session. A no-op when not signed in."""
        if self.access_token is None:
            return
        ctx = RequestContext(source=self._source_name, method="sign_out")
        try:
            await self._rest_post(
                self._auth_url("logout"), None, headers=self._headers(), context=ctx
            )
        finally:
            self.access_token = None
            self.refresh_token = None

    async def get_user(self) -> dict[str, Any] | None:
        """Return the signed-in auth user, or None when there is no session."""
        if self.access_token is None:
            return None
        ctx = RequestContext(source=self._source_name, method="get_user")
        return await self._rest_get(
            self._auth_url("user"), headers=self._headers(), context=ctx
        )

    # -- REST -----------------------------------------------------------------

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Select rows from a table. Each filter is an equality match."""
        params: dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"

        ctx = RequestContext(
            source=self._source_name, method="select", params={"table": table}
        )
        data = await self._rest_get(
            self._rest_url(table), params, headers=self._headers(), context=ctx
        )
        if not isinstance(data, list):
            raise DataSourceError(self._source_name, f"Unexpected response for {table}")
        return data

    async def update(
        self, table: str, values: dict[str, Any], filters: dict[str, Any]
    ) -> None:
        """Update rows matching the equality filters."""
        params = {column: f"eq.{value}" for column, value in filters.items()}
        ctx = RequestContext(
            source=self._source_name, method="update", params={"table": table}
        )
        result = await self._request(
            "PATCH",
            self._rest_url(table),
            params=params,
            json_body=values,
            headers={**self._headers(), "Prefer": "return=minimal"},
            context=ctx,
        )
        self._unwrap(result, ctx)

    # -- Private helpers ------------------------------------------------------

    def _auth_url(self, endpoint: str) -> str:
        return f"{self.url}{SUPABASE_AUTH_PATH}/{endpoint}"

    def _rest_url(self, table: str) -> str:
        return f"{self.url}{SUPABASE_REST_PATH}/{table}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
        }

    def _store_session(self, data: dict[str, Any] | None) -> None:
        if not data or not data.get("access_token"):
            raise DataSourceError(self._source_name, "No session in auth response")
        self.access_token = data["access_token"]
        self.refresh_token = data.get("refresh_token")
        logger.debug("Stored session for user %s", (data.get("user") or {}).get("id"))
