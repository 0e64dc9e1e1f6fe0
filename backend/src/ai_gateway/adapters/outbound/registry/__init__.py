"""Model registry stores implementing ModelRegistryPort.

Redis layout (``prefix`` defaults to ``ai_models``)::

    {prefix}:index        list of entry ids, in registry order
    {prefix}:{id}         hash, one field per document key, JSON values

Writing individual hash fields gives per-field last-write-wins semantics:
concurrent updates to different fields of the same entry do not clobber
each other.
"""

from __future__ import annotations

import copy
from typing import Any

import orjson
import redis.asyncio as redis
import structlog

from ai_gateway.domain.entities import ModelEntry, to_document_fields
from ai_gateway.domain.exceptions import RegistryUnavailableError
from ai_gateway.ports.outbound import ModelRegistryPort

logger = structlog.get_logger(__name__)

# HSET only when the hash still exists, so a write racing a replace_all
# cannot resurrect a deleted entry as an orphan partial hash.
_UPDATE_IF_EXISTS = """
if redis.call("EXISTS", KEYS[1]) == 0 then
    return 0
end
redis.call("HSET", KEYS[1], unpack(ARGV))
return 1
"""


class MemoryModelRegistry(ModelRegistryPort):
    """In-process registry used when no Redis URL is configured."""

    def __init__(self, entries: list[ModelEntry] | None = None) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        for entry in entries or []:
            self._docs[entry.id] = entry.to_document()
        logger.info("registry_initialized_memory", count=len(self._docs))

    async def list_entries(self) -> list[ModelEntry]:
        return [ModelEntry.from_document(copy.deepcopy(doc)) for doc in self._docs.values()]

    async def update(self, model_id: str, fields: dict[str, Any]) -> None:
        doc = self._docs.get(model_id)
        if doc is None:
            logger.warning("registry_update_unknown_model", model_id=model_id)
            return
        doc.update(copy.deepcopy(to_document_fields(fields)))

    async def replace_all(self, entries: list[ModelEntry]) -> None:
        self._docs = {entry.id: entry.to_document() for entry in entries}

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class RedisModelRegistry(ModelRegistryPort):
    """Redis-backed registry shared by every gateway instance."""

    def __init__(
        self,
        url: str,
        *,
        prefix: str = "ai_models",
        max_connections: int = 50,
        client: redis.Redis | None = None,
    ) -> None:
        self._prefix = prefix
        if client is not None:
            self._pool = None
            self._client = client
        else:
            self._pool = redis.ConnectionPool.from_url(
                url,
                max_connections=max_connections,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)

    @property
    def _index_key(self) -> str:
        return f"{self._prefix}:index"

    def _entry_key(self, model_id: str) -> str:
        return f"{self._prefix}:{model_id}"

    @staticmethod
    def _encode(doc: dict[str, Any]) -> dict[str, str]:
        return {k: orjson.dumps(v).decode() for k, v in doc.items()}

    @staticmethod
    def _decode(raw: dict[str, str]) -> dict[str, Any]:
        return {k: orjson.loads(v) for k, v in raw.items()}

    async def list_entries(self) -> list[ModelEntry]:
        try:
            ids = await self._client.lrange(self._index_key, 0, -1)
            if not ids:
                return []
            async with self._client.pipeline(transaction=False) as pipe:
                for model_id in ids:
                    pipe.hgetall(self._entry_key(model_id))
                rows = await pipe.execute()
        except redis.RedisError as exc:
            logger.error("registry_list_error", error=str(exc))
            return []

        entries: list[ModelEntry] = []
        for model_id, raw in zip(ids, rows):
            if not raw:
                continue
            try:
                entries.append(ModelEntry.from_document(self._decode(raw)))
            except (KeyError, TypeError, ValueError, orjson.JSONDecodeError) as exc:
                logger.warning("registry_entry_malformed", model_id=model_id, error=str(exc))
        return entries

    async def update(self, model_id: str, fields: dict[str, Any]) -> None:
        if not fields:
            return
        key = self._entry_key(model_id)
        args: list[str] = []
        for name, value in self._encode(to_document_fields(fields)).items():
            args.extend((name, value))
        try:
            written = await self._client.eval(_UPDATE_IF_EXISTS, 1, key, *args)
        except redis.RedisError as exc:
            logger.error("registry_update_error", model_id=model_id, error=str(exc))
            return
        if not written:
            logger.warning("registry_update_unknown_model", model_id=model_id)

    async def replace_all(self, entries: list[ModelEntry]) -> None:
        try:
            old_ids = await self._client.lrange(self._index_key, 0, -1)
            async with self._client.pipeline(transaction=True) as pipe:
                for model_id in old_ids:
                    pipe.delete(self._entry_key(model_id))
                pipe.delete(self._index_key)
                for entry in entries:
                    pipe.hset(self._entry_key(entry.id), mapping=self._encode(entry.to_document()))
                if entries:
                    pipe.rpush(self._index_key, *[e.id for e in entries])
                await pipe.execute()
        except redis.RedisError as exc:
            logger.error("registry_replace_error", error=str(exc))
            raise RegistryUnavailableError(f"Registry store unavailable: {exc}") from exc

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
        if self._pool is not None:
            await self._pool.aclose()


def create_model_registry(
    url: str, *, prefix: str = "ai_models", max_connections: int = 50
) -> ModelRegistryPort:
    """Redis registry when a URL is configured, in-memory otherwise."""
    if not url:
        logger.warning("redis_url_missing_falling_back_to_memory", store="registry")
        return MemoryModelRegistry()
    return RedisModelRegistry(url, prefix=prefix, max_connections=max_connections)
