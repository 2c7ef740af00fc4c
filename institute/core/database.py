"""
Data-access layer over the Supabase tables.

Routers and services talk to an ``EntityStore``; the production
implementation is ``SupabaseStore``. Every failure coming back from the
client is re-raised as ``StoreError`` so callers only handle one type.
"""

import logging
from typing import Any, Optional, Protocol

from supabase import create_client, Client

from institute.core.config import Settings
from institute.core.errors import StoreError, UnknownEntityType
from institute.schemas.entities import ENTITY_TABLES

logger = logging.getLogger(__name__)


def table_for(entity_type: str) -> str:
    try:
        return ENTITY_TABLES[entity_type]
    except KeyError:
        raise UnknownEntityType(entity_type)


class EntityStore(Protocol):
    def create(self, entity_type: str, record: dict) -> dict: ...

    def list(self, entity_type: str, filters: Optional[dict] = None) -> list[dict]: ...

    def update(self, entity_type: str, entity_id: str, patch: dict) -> dict: ...

    def delete(self, entity_type: str, entity_id: str) -> None: ...

    def find_user(self, **criteria: Any) -> Optional[dict]: ...

    def user_id_for_token(self, token: str) -> Optional[str]: ...


class SupabaseStore:
    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        # Created on first use so the app can start without credentials
        if self._client is None:
            self._client = create_client(
                self._settings.SUPABASE_URL,
                self._settings.SUPABASE_SERVICE_KEY or self._settings.SUPABASE_KEY,
            )
        return self._client

    def create(self, entity_type: str, record: dict) -> dict:
        table = table_for(entity_type)
        try:
            result = self.client.table(table).insert(record).execute()
        except Exception as e:
            raise StoreError(str(e), entity_type) from e
        if not result.data:
            raise StoreError(f"Insert into {table} returned no row", entity_type)
        return result.data[0]

    def list(self, entity_type: str, filters: Optional[dict] = None) -> list[dict]:
        table = table_for(entity_type)
        try:
            query = self.client.table(table).select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            result = query.order("created_at", desc=True).execute()
        except Exception as e:
            raise StoreError(str(e), entity_type) from e
        return result.data or []

    def update(self, entity_type: str, entity_id: str, patch: dict) -> dict:
        table = table_for(entity_type)
        try:
            result = self.client.table(table).update(patch).eq("id", entity_id).execute()
        except Exception as e:
            raise StoreError(str(e), entity_type) from e
        if not result.data:
            raise StoreError(f"No {entity_type} row with id {entity_id}", entity_type)
        return result.data[0]

    def delete(self, entity_type: str, entity_id: str) -> None:
        table = table_for(entity_type)
        try:
            self.client.table(table).delete().eq("id", entity_id).execute()
        except Exception as e:
            raise StoreError(str(e), entity_type) from e

    def find_user(self, **criteria: Any) -> dict | None:
        """Profile plus role for the auth layer, or None."""
        try:
            query = self.client.table("profiles").select("*")
            for column, value in criteria.items():
                query = query.eq(column, value)
            result = query.maybe_single().execute()
            if not result or not result.data:
                return None
            profile = result.data
            roles = (
                self.client.table("user_roles")
                .select("role")
                .eq("user_id", profile["id"])
                .execute()
            )
        except Exception as e:
            logger.warning("User lookup failed for %s: %s", criteria, e)
            return None
        profile["role"] = roles.data[0]["role"] if roles.data else "student"
        return profile

    def user_id_for_token(self, token: str) -> str | None:
        """Verify an access token with Supabase Auth; None when it is rejected."""
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            logger.info("Token rejected by Supabase Auth: %s", e)
            return None
        if not response or not response.user:
            return None
        return response.user.id
