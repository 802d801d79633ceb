import asyncio

import pytest

from src.functions.archive_ingestion.core.contracts.record import EntityKind
from src.functions.archive_ingestion.core.db.memory_store import InMemoryArchiveStore
from src.functions.archive_ingestion.core.db.store import DuplicateEntityError, is_duplicate_error
from src.functions.archive_ingestion.core.db.supabase_store import escape_like


class PostgrestLikeError(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


def test_duplicate_edges_are_reported_not_raised():
    store = InMemoryArchiveStore()

    async def scenario():
        record = await store.insert_record({"title_name": "Editorial"})
        tag = await store.create_entity(EntityKind.TAG, "Karma Yoga")
        first = await store.link_entity(EntityKind.TAG, record["id"], tag.id)
        second = await store.link_entity(EntityKind.TAG, record["id"], tag.id)
        return first, second

    assert asyncio.run(scenario()) == (True, False)


def test_entity_names_are_unique_ignoring_case():
    store = InMemoryArchiveStore()

    async def scenario():
        await store.create_entity(EntityKind.AUTHOR, "Sister Nivedita")
        await store.create_entity(EntityKind.AUTHOR, "SISTER NIVEDITA")

    with pytest.raises(DuplicateEntityError):
        asyncio.run(scenario())


@pytest.mark.parametrize(
    "error, expected",
    [
        (PostgrestLikeError("23505", "conflict"), True),
        (RuntimeError('duplicate key value violates unique constraint "tags_name_key"'), True),
        (RuntimeError("Key (name)=(Yoga) already exists."), True),
        (PostgrestLikeError("42P01", 'relation "tags" does not exist'), False),
    ],
)
def test_is_duplicate_error(error, expected):
    assert is_duplicate_error(error) is expected


def test_escape_like_neutralises_wildcards():
    assert escape_like("100%_pure\\") == "100\\%\\_pure\\\\"
