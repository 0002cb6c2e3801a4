import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from supabase import create_client, Client

from ..core.config import Config


logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 10


def get_client(config: Config) -> Client:
    return create_client(config.supabase_url, config.supabase_service_key)


class AccountStore:
    """Key-value lookups against the account table.

    Records are addressed by a composite primary key stored in the
    `partition` and `sort` columns.
    """

    def __init__(self, config: Config, client: Optional[Client] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client(self.config)
        return self._client

    def get_objects(self, primary_keys: Mapping[str, str], table: str, limit: int = DEFAULT_QUERY_LIMIT) -> List[Dict[str, Any]]:
        try:
            query = self.client.table(table).select("*")
            for column, value in primary_keys.items():
                query = query.eq(column, value)
            result = query.limit(limit).execute()
            return list(result.data or [])
        except Exception as e:
            logger.error(f"Failed to query {table} for {dict(primary_keys)}: {e}")
            raise

    async def get_objects_async(self, primary_keys: Mapping[str, str], table: str, limit: int = DEFAULT_QUERY_LIMIT) -> List[Dict[str, Any]]:
        """Async variant offloading the blocking supabase call to a thread."""
        return await asyncio.to_thread(self.get_objects, primary_keys, table, limit)
