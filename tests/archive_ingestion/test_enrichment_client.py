import asyncio

import pytest

from src.functions.archive_ingestion.core.config import EnrichmentConfig
from src.functions.archive_ingestion.core.llm.enrichment_client import EnrichmentClient, EnrichmentError
from src.functions.archive_ingestion.core.prompts import MODE_SETTINGS, EnrichmentMode
from src.shared.batch.timeouts import is_timeout_error
from tests.archive_ingestion.fixtures import FakeChatClient


def make_client(*contents):
    fake = FakeChatClient(list(contents))
    client = EnrichmentClient(EnrichmentConfig(api_key="test-key", model="sarvam-m"), client=fake)
    return client, fake


def test_summary_strips_reasoning_block():
    client, fake = make_client("<think>plan the answer</think>\n  The editorial reflects on service.  ")

    summary = asyncio.run(client.summarize("Some article text", "Editorial"))

    assert summary == "The editorial reflects on service."
    request = fake.requests[0]
    assert request["model"] == "sarvam-m"
    assert request["max_tokens"] == MODE_SETTINGS[EnrichmentMode.SUMMARY].max_tokens
    assert "Editorial" in request["messages"][1]["content"]


def test_tags_are_normalized():
    client, _ = make_client("1. karma yoga\n2. Vedanta\n3. Karma Yoga\n4. Divine Mother Worship Today")

    tags = asyncio.run(client.tag("text", None))

    assert tags == ["Karma Yoga", "Divine Mother Worship"]


def test_authors_unknown_yields_empty_list():
    client, _ = make_client("Unknown")

    assert asyncio.run(client.attribute_authors("text", "Title")) == []


def test_list_modes_see_a_shorter_context():
    client, fake = make_client("Karma Yoga", "A summary.")
    text = "ж" * 20000

    asyncio.run(client.tag(text, None))
    asyncio.run(client.summarize(text, None))

    tag_prompt = fake.requests[0]["messages"][1]["content"]
    summary_prompt = fake.requests[1]["messages"][1]["content"]
    assert tag_prompt.count("ж") == MODE_SETTINGS[EnrichmentMode.TAGS].context_chars
    assert summary_prompt.count("ж") == MODE_SETTINGS[EnrichmentMode.SUMMARY].context_chars


@pytest.mark.parametrize("content", [None, "", "   ", "<think>only thinking</think>"])
def test_empty_output_raises(content):
    client, _ = make_client(content)

    with pytest.raises(EnrichmentError):
        asyncio.run(client.conclude("text", "Title"))


def test_tags_without_usable_phrase_raise():
    client, _ = make_client("Vedanta\nYoga")

    with pytest.raises(EnrichmentError):
        asyncio.run(client.generate("tags", "text", "Title"))


def test_model_output_naming_a_timeout_is_still_a_hard_failure():
    client, _ = make_client("Timeout")

    with pytest.raises(EnrichmentError) as excinfo:
        asyncio.run(client.tag("text", "Title"))

    assert not is_timeout_error(excinfo.value)
