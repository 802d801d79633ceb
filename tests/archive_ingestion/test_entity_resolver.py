import asyncio

import pytest

from src.functions.archive_ingestion.core.contracts.record import EntityKind
from src.functions.archive_ingestion.core.db.memory_store import InMemoryArchiveStore
from src.functions.archive_ingestion.core.db.store import StoreError
from src.functions.archive_ingestion.core.resolution.entity_resolver import EntityResolver


def test_concurrent_callers_create_one_entity():
    store = InMemoryArchiveStore(latency=0.001)
    resolver = EntityResolver(store)

    async def scenario():
        return await asyncio.gather(
            *(resolver.resolve_or_create("tag", "Ramakrishna Mission") for _ in range(20))
        )

    entities = asyncio.run(scenario())

    assert len(entities) == 20
    assert len({entity.id for entity in entities}) == 1
    assert store.entity_names(EntityKind.TAG) == ["Ramakrishna Mission"]
    assert store.calls["create_tag"] == 1
    assert resolver.created[EntityKind.TAG] == 1


def test_names_match_case_insensitively_after_trimming():
    store = InMemoryArchiveStore()
    resolver = EntityResolver(store)

    async def scenario():
        first = await resolver.resolve_or_create(EntityKind.AUTHOR, "Swami Vivekananda")
        second = await resolver.resolve_or_create(EntityKind.AUTHOR, "swami vivekananda ")
        return first, second

    first, second = asyncio.run(scenario())

    assert first.id == second.id
    assert store.entity_names(EntityKind.AUTHOR) == ["Swami Vivekananda"]


def test_existing_entity_is_reused_without_create():
    store = InMemoryArchiveStore()

    async def scenario():
        existing = await store.create_entity(EntityKind.TAG, "Indian Culture")
        resolver = EntityResolver(store)
        resolved = await resolver.resolve_or_create(EntityKind.TAG, "INDIAN CULTURE")
        return existing, resolved, resolver

    existing, resolved, resolver = asyncio.run(scenario())

    assert resolved == existing
    assert resolver.created[EntityKind.TAG] == 0


@pytest.mark.parametrize(
    "kind, name",
    [("tag", ""), ("tag", "   "), ("author", None), ("author", "Unknown"), ("author", "unknown author")],
)
def test_blank_and_unknown_names_resolve_to_none(kind, name):
    store = InMemoryArchiveStore()
    resolver = EntityResolver(store)

    assert asyncio.run(resolver.resolve_or_create(kind, name)) is None
    assert store.calls == {}


class LateWriterStore(InMemoryArchiveStore):
    """Another process inserts the name between our lookup and our insert."""

    def __init__(self):
        super().__init__()
        self._hidden_once = False

    async def find_entity(self, kind, name):
        if not self._hidden_once:
            self._hidden_once = True
            await InMemoryArchiveStore.create_entity(self, kind, name)
            return None
        return await super().find_entity(kind, name)


def test_unique_violation_returns_the_winning_row():
    store = LateWriterStore()
    resolver = EntityResolver(store)

    entity = asyncio.run(resolver.resolve_or_create(EntityKind.TAG, "Seva Dharma"))

    assert entity is not None
    assert store.entity_names(EntityKind.TAG) == ["Seva Dharma"]
    assert resolver.created[EntityKind.TAG] == 0
    assert resolver.races[EntityKind.TAG] == 1


class FlakyCreateStore(InMemoryArchiveStore):
    def __init__(self):
        super().__init__()
        self.failures_left = 1

    async def create_entity(self, kind, name):
        if self.failures_left:
            self.failures_left -= 1
            raise StoreError("connection reset by peer")
        return await super().create_entity(kind, name)


def test_failed_resolution_is_not_cached():
    store = FlakyCreateStore()
    resolver = EntityResolver(store)

    async def scenario():
        with pytest.raises(StoreError):
            await resolver.resolve_or_create(EntityKind.TAG, "Spiritual Practice")
        cached_after_failure = len(resolver)
        entity = await resolver.resolve_or_create(EntityKind.TAG, "Spiritual Practice")
        return cached_after_failure, entity

    cached_after_failure, entity = asyncio.run(scenario())

    assert cached_after_failure == 0
    assert entity.name == "Spiritual Practice"
    assert len(resolver) == 1
