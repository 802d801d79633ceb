from src.functions.archive_ingestion.core.processors.output_normalizer import (
    is_unknown_author,
    normalize_authors,
    normalize_tags,
    trim_context,
)


def test_tags_are_two_or_three_word_title_case_phrases():
    raw = (
        "1. ramakrishna mission\n"
        "- SWAMI vivekananda teachings extra\n"
        "Vedanta\n"
        "ramakrishna mission, Indian Culture; Spiritual Practice, Seva Dharma"
    )

    assert normalize_tags(raw) == [
        "Ramakrishna Mission",
        "Swami Vivekananda Teachings",
        "Indian Culture",
        "Spiritual Practice",
        "Seva Dharma",
    ]


def test_tags_are_capped_at_five():
    raw = "\n".join(f"Topic Number {word}" for word in ["one", "two", "three", "four", "five", "six", "seven"])

    tags = normalize_tags(raw)

    assert len(tags) == 5
    assert tags[0] == "Topic Number One"


def test_tags_strip_punctuation_and_digits():
    assert normalize_tags("**Karma Yoga!**\n\"Bhakti-Yoga\" 2020") == ["Karma Yoga", "Bhakti Yoga"]


def test_authors_drop_noise_duplicates_and_unknown():
    raw = "1. Swami Vivekananda\n2. swami vivekananda\nUnknown\n- Sister Nivedita"

    assert normalize_authors(raw) == ["Swami Vivekananda", "Sister Nivedita"]


def test_only_unknown_means_no_authors():
    assert normalize_authors("Unknown") == []


def test_unknown_author_markers():
    assert is_unknown_author("Unknown")
    assert is_unknown_author("unknown author")
    assert is_unknown_author("N/A")
    assert not is_unknown_author("Swami Unknownananda")


def test_trim_context_collapses_whitespace_before_cutting():
    assert trim_context("a  b\n\nc d", 5) == "a b c"
