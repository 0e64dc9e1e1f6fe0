"""Unit tests for registry and usage-counter stores."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
import redis.asyncio as redis

from ai_gateway.adapters.outbound.registry import (
    MemoryModelRegistry,
    RedisModelRegistry,
    create_model_registry,
)
from ai_gateway.adapters.outbound.usage import MemoryUsageCounter, RedisUsageCounter
from ai_gateway.domain.enums import HealthStatus, UsageClass
from ai_gateway.domain.exceptions import RegistryUnavailableError


# ═══════════════════════════════════════════════════════════════
#  Memory registry
# ═══════════════════════════════════════════════════════════════
class TestMemoryModelRegistry:
    @pytest.mark.asyncio
    async def test_preserves_registry_order(self, make_entry) -> None:
        registry = MemoryModelRegistry([make_entry("b"), make_entry("a"), make_entry("c")])
        assert [e.id for e in await registry.list_entries()] == ["b", "a", "c"]

    @pytest.mark.asyncio
    async def test_partial_update_touches_only_given_fields(self, make_entry) -> None:
        registry = MemoryModelRegistry([make_entry("m", used_today=4, error_count=2)])

        await registry.update("m", {"error_count": 0, "status": HealthStatus.GREEN})

        entry = (await registry.list_entries())[0]
        assert entry.error_count == 0
        assert entry.used_today == 4

    @pytest.mark.asyncio
    async def test_update_unknown_id_creates_nothing(self, registry) -> None:
        await registry.update("ghost", {"error_count": 1})
        assert await registry.list_entries() == []

    @pytest.mark.asyncio
    async def test_listed_entries_are_copies(self, make_entry) -> None:
        registry = MemoryModelRegistry([make_entry("m", api_keys=["k1"])])
        listed = (await registry.list_entries())[0]
        listed.api_keys.append("leaked")
        assert (await registry.list_entries())[0].api_keys == ["k1"]

    def test_factory_without_url_uses_memory(self) -> None:
        assert isinstance(create_model_registry(""), MemoryModelRegistry)


# ═══════════════════════════════════════════════════════════════
#  Redis registry
# ═══════════════════════════════════════════════════════════════
class _Pipeline:
    """Minimal stand-in for a redis pipeline context manager."""

    def __init__(self, results: list | None = None) -> None:
        self.ops: list[tuple] = []
        self._results = results or []

    async def __aenter__(self) -> _Pipeline:
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    def __getattr__(self, name: str):
        def _record(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return _record

    async def execute(self) -> list:
        return self._results


class TestRedisModelRegistry:
    @pytest.mark.asyncio
    async def test_list_decodes_hash_fields(self, make_entry) -> None:
        doc = make_entry("m", current_key_index=1).to_document()
        raw = {k: orjson.dumps(v).decode() for k, v in doc.items()}
        client = MagicMock()
        client.lrange = AsyncMock(return_value=["m", "gone"])
        client.pipeline = MagicMock(return_value=_Pipeline([raw, {}]))

        entries = await RedisModelRegistry("", client=client).list_entries()

        assert [e.id for e in entries] == ["m"]
        assert entries[0].current_key_index == 1
        assert entries[0].api_keys == ["key-1"]

    @pytest.mark.asyncio
    async def test_list_returns_empty_when_unreachable(self) -> None:
        client = MagicMock()
        client.lrange = AsyncMock(side_effect=redis.ConnectionError("refused"))
        assert await RedisModelRegistry("", client=client).list_entries() == []

    @pytest.mark.asyncio
    async def test_update_writes_only_given_fields(self) -> None:
        client = MagicMock()
        client.eval = AsyncMock(return_value=1)

        await RedisModelRegistry("", prefix="reg", client=client).update(
            "m", {"error_count": 3, "status": HealthStatus.YELLOW}
        )

        script, numkeys, *rest = client.eval.await_args.args
        assert "EXISTS" in script
        assert numkeys == 1
        assert rest == ["reg:m", "errorCount", "3", "status", '"yellow"']

    @pytest.mark.asyncio
    async def test_update_is_a_single_conditional_write(self) -> None:
        client = MagicMock()
        client.eval = AsyncMock(return_value=0)
        client.exists = AsyncMock()
        client.hset = AsyncMock()

        await RedisModelRegistry("", client=client).update("ghost", {"error_count": 1})

        client.eval.assert_awaited_once()
        client.exists.assert_not_awaited()
        client.hset.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_swallows_store_errors(self) -> None:
        client = MagicMock()
        client.eval = AsyncMock(side_effect=redis.TimeoutError("slow"))
        await RedisModelRegistry("", client=client).update("m", {"error_count": 1})

    @pytest.mark.asyncio
    async def test_replace_all_rewrites_index(self, make_entry) -> None:
        pipe = _Pipeline()
        client = MagicMock()
        client.lrange = AsyncMock(return_value=["old"])
        client.pipeline = MagicMock(return_value=pipe)

        await RedisModelRegistry("", prefix="reg", client=client).replace_all(
            [make_entry("a"), make_entry("b")]
        )

        names = [op[0] for op in pipe.ops]
        assert ("delete", ("reg:old",), {}) in pipe.ops
        assert names.count("hset") == 2
        assert ("rpush", ("reg:index", "a", "b"), {}) in pipe.ops

    @pytest.mark.asyncio
    async def test_replace_all_raises_when_unreachable(self, make_entry) -> None:
        client = MagicMock()
        client.lrange = AsyncMock(side_effect=redis.ConnectionError("refused"))
        with pytest.raises(RegistryUnavailableError):
            await RedisModelRegistry("", client=client).replace_all([make_entry("a")])


# ═══════════════════════════════════════════════════════════════
#  Usage counters
# ═══════════════════════════════════════════════════════════════
class TestUsageCounters:
    @pytest.mark.asyncio
    async def test_memory_counter(self) -> None:
        counter = MemoryUsageCounter()
        await counter.increment(UsageClass.PILOT)
        await counter.increment(UsageClass.PILOT)
        await counter.increment(UsageClass.STUDENT)
        usage = await counter.get_usage()
        assert (usage.pilot_count, usage.student_count) == (2, 1)

    @pytest.mark.asyncio
    async def test_redis_counter_reads_both_classes(self) -> None:
        client = MagicMock()
        client.mget = AsyncMock(return_value=["7", None])
        usage = await RedisUsageCounter("", client=client).get_usage()
        assert (usage.pilot_count, usage.student_count) == (7, 0)

    @pytest.mark.asyncio
    async def test_redis_counter_unreachable_returns_none(self) -> None:
        client = MagicMock()
        client.mget = AsyncMock(side_effect=redis.ConnectionError("refused"))
        assert await RedisUsageCounter("", client=client).get_usage() is None

    @pytest.mark.asyncio
    async def test_redis_counter_sets_ttl_on_first_increment(self) -> None:
        client = MagicMock()
        client.incr = AsyncMock(return_value=1)
        client.expire = AsyncMock()
        assert await RedisUsageCounter("", client=client).increment(UsageClass.STUDENT) == 1
        client.expire.assert_awaited_once()
