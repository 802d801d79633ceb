import asyncio

from src.functions.archive_ingestion.core.contracts.record import EntityKind
from src.functions.archive_ingestion.core.db.memory_store import InMemoryArchiveStore
from src.functions.archive_ingestion.core.pipelines.tag_backfill import TagBackfillPipeline
from src.functions.archive_ingestion.core.resolution.entity_resolver import EntityResolver
from tests.archive_ingestion.fixtures import ARTICLE_TEXT, FakeDocuments, FakeEnrichment, make_config

PDF_URL = "https://cdn.example.org/issue-7.pdf"


async def seed(store):
    tagged = await store.insert_record({"title_name": "Tagged", "extracted_text": ARTICLE_TEXT, "pdf_url": None})
    reused = await store.insert_record({"title_name": "Reused", "extracted_text": ARTICLE_TEXT, "pdf_url": None})
    refetch = await store.insert_record({"title_name": "Refetch", "extracted_text": "  ", "pdf_url": PDF_URL})
    empty = await store.insert_record({"title_name": "Empty", "extracted_text": "--- 12 ---", "pdf_url": None})
    existing = await store.create_entity(EntityKind.TAG, "Ramakrishna Mission")
    await store.link_entity(EntityKind.TAG, tagged["id"], existing.id)
    return tagged, reused, refetch, empty


def build(tmp_path, store, documents, enrichment=None, **kwargs):
    return TagBackfillPipeline(
        store=store,
        enrichment=enrichment or FakeEnrichment(tags=["Ramakrishna Mission", "Karma Yoga"]),
        resolver=EntityResolver(store),
        config=make_config(tmp_path),
        documents=documents,
        **kwargs,
    )


def test_backfill_tags_untagged_records(tmp_path):
    store = InMemoryArchiveStore()
    documents = FakeDocuments({PDF_URL: ARTICLE_TEXT})

    async def scenario():
        records = await seed(store)
        stats = await build(tmp_path, store, documents).run(page_size=50)
        return records, stats

    (tagged, reused, refetch, empty), stats = asyncio.run(scenario())

    assert stats.to_dict() == {
        "scanned": 4,
        "updated": 2,
        "no_text": 1,
        "failed": 0,
        "extracted_now": 1,
        "reused_text": 1,
        "linked_tags": 4,
        "created_tags": 1,
    }
    assert documents.calls == [PDF_URL]
    assert store.records[refetch["id"]]["extracted_text"] == ARTICLE_TEXT
    assert store.edges_for(EntityKind.TAG, tagged["id"]) == ["Ramakrishna Mission"]
    assert store.edges_for(EntityKind.TAG, reused["id"]) == ["Karma Yoga", "Ramakrishna Mission"]
    assert store.edges_for(EntityKind.TAG, empty["id"]) == []


def test_backfill_honours_start_id_and_limit(tmp_path):
    store = InMemoryArchiveStore()
    enrichment = FakeEnrichment(tags=["Karma Yoga"])

    async def scenario():
        for n in range(5):
            await store.insert_record({"title_name": f"Article {n}", "extracted_text": ARTICLE_TEXT})
        return await build(tmp_path, store, None, enrichment).run(start_id=2, limit=2, page_size=50)

    stats = asyncio.run(scenario())

    assert stats.scanned == 2
    assert stats.updated == 2
    assert enrichment.calls["tags"] == 2
    assert sorted(rid for rid, _ in store.edges[EntityKind.TAG]) == [2, 3]


def test_generation_failures_are_counted_and_do_not_stop_the_run(tmp_path):
    store = InMemoryArchiveStore()
    enrichment = FakeEnrichment(fail_mode="tags")

    async def scenario():
        await store.insert_record({"title_name": "One", "extracted_text": ARTICLE_TEXT})
        await store.insert_record({"title_name": "Two", "extracted_text": ARTICLE_TEXT})
        return await build(tmp_path, store, None, enrichment).run()

    stats = asyncio.run(scenario())

    assert stats.failed == 2
    assert stats.updated == 0
    assert enrichment.calls["tags"] == 2
