import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from src.shared.batch.timeouts import (
    HardFailure,
    TimeoutLog,
    flatten_error,
    format_timeout_line,
    is_timeout_error,
)


class NavigationError(Exception):
    pass


@pytest.mark.parametrize(
    "error",
    [
        asyncio.TimeoutError(),
        TimeoutError("read"),
        httpx.ReadTimeout("read timed out"),
        NavigationError("page.goto: Timeout 60000ms exceeded."),
        RuntimeError("Request was aborted"),
        RuntimeError("504 Deadline Exceeded"),
        OSError("connect ETIMEDOUT 10.0.0.1:443"),
    ],
)
def test_timeout_class_errors_are_recognised(error):
    assert is_timeout_error(error)


@pytest.mark.parametrize(
    "error",
    [
        ValueError("malformed output"),
        KeyError("id"),
        RuntimeError("duplicate key value violates unique constraint"),
        asyncio.CancelledError(),
    ],
)
def test_other_errors_are_not_timeouts(error):
    assert not is_timeout_error(error)


def test_wrapped_timeout_is_found_through_the_cause_chain():
    try:
        try:
            raise TimeoutError()
        except TimeoutError as inner:
            raise RuntimeError("extraction failed") from inner
    except RuntimeError as outer:
        assert is_timeout_error(outer)


def test_format_timeout_line():
    line = format_timeout_line(
        scope="article",
        period_key="2023-01",
        attempt=2,
        max_attempts=3,
        error=RuntimeError("Timeout 60000ms\n  exceeded"),
        locator_url="https://archive.example.org/a/1",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )

    assert line == (
        "2024-05-01T12:00:00+00:00 scope=article period=2023-01 attempt=2/3 "
        "url=https://archive.example.org/a/1 error=RuntimeError: Timeout 60000ms exceeded"
    )


def test_flatten_error_without_message():
    assert flatten_error(asyncio.TimeoutError()) == "TimeoutError"


def test_timeout_log_creates_parents_and_appends(tmp_path):
    log = TimeoutLog(tmp_path / "nested" / "dir" / "timeouts.log")

    log.log_timeout("period", "2023", 1, 2, TimeoutError("index stalled"))
    log.log_timeout("article", "2023-01", 3, 3, TimeoutError("x"), locator_url="https://a/1")

    lines = log.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "scope=period period=2023 attempt=1/2" in lines[0]
    assert "url=" not in lines[0]
    assert lines[1].endswith("url=https://a/1 error=TimeoutError: x")


def test_timeout_log_write_failure_is_not_raised(tmp_path, caplog):
    log = TimeoutLog(tmp_path)  # a directory cannot be opened for append

    log.log_timeout("article", "2023-01", 1, 3, TimeoutError("x"))

    assert "Could not append to timeout log" in caplog.text


def test_hard_failures_ignore_words_quoted_in_their_message():
    class BadOutput(HardFailure, RuntimeError):
        pass

    assert not is_timeout_error(BadOutput("No usable tags in generation output: 'Timeout'"))
    assert not is_timeout_error(BadOutput("Abortion Rights"))


def test_hard_failure_caused_by_a_timeout_is_still_a_timeout():
    class WriteFailed(HardFailure, RuntimeError):
        pass

    try:
        try:
            raise httpx.ReadTimeout("read timed out")
        except httpx.ReadTimeout as inner:
            raise WriteFailed("Record insert failed") from inner
    except WriteFailed as outer:
        assert is_timeout_error(outer)
