from __future__ import annotations

import os
from typing import Any, Protocol, Sequence

import httpx
from supabase import Client, create_client

from scraper_service.core.errors import StorageUnavailableError

PROPERTIES_TABLE = "properties"
PAGE_SIZE = 1000


class PropertyRepo(Protocol):
    def upsert_by_key(self, table: str, row: dict[str, Any], conflict_keys: Sequence[str]) -> None: ...

    def get_existing_prices(self, source: str) -> dict[str, int | None]: ...

    def fetch_properties(self, source: str, columns: str = "*") -> list[dict[str, Any]]: ...


class SupabaseRepo:
    def __init__(self, url: str | None = None, service_role_key: str | None = None) -> None:
        supabase_url = url or os.environ.get("SUPABASE_URL")
        supabase_key = (
            service_role_key
            or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
            or os.environ.get("SUPABASE_SERVICE_KEY")
        )
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required.")
        self.client: Client = create_client(supabase_url, supabase_key)

    def upsert_by_key(self, table: str, row: dict[str, Any], conflict_keys: Sequence[str]) -> None:
        """
        Insert-or-update on the composite key. The row never carries `id`, so an
        existing row keeps its primary key.
        """
        try:
            self.client.table(table).upsert(row, on_conflict=",".join(conflict_keys)).execute()
        except httpx.TransportError as exc:
            raise StorageUnavailableError(f"Property store unreachable: {exc}") from exc

    def get_existing_prices(self, source: str) -> dict[str, int | None]:
        rows = self.fetch_properties(source, columns="source_id, price")
        return {str(row["source_id"]): row.get("price") for row in rows if row.get("source_id")}

    def fetch_properties(self, source: str, columns: str = "*") -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        start = 0
        try:
            while True:
                page = (
                    self.client.table(PROPERTIES_TABLE)
                    .select(columns)
                    .eq("source", source)
                    .range(start, start + PAGE_SIZE - 1)
                    .execute()
                    .data
                    or []
                )
                out.extend(page)
                if len(page) < PAGE_SIZE:
                    return out
                start += PAGE_SIZE
        except httpx.TransportError as exc:
            raise StorageUnavailableError(f"Property store unreachable: {exc}") from exc
