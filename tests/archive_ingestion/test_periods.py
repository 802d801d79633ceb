import pytest

from src.functions.archive_ingestion.core.contracts.article import IssuePeriod
from src.functions.archive_ingestion.core.utils.periods import (
    default_years,
    issue_timestamp,
    issue_volume,
    month_from_text,
    resolve_month,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("The Vedanta Kesari - March 2021", 3),
        ("/s/vkm/a/jan-2023-editorial", 1),
        ("Sept. issue", 9),
        ("Maybe next time", None),
        ("Editorial", None),
        (None, None),
    ],
)
def test_month_from_text(text, expected):
    assert month_from_text(text) == expected


def test_issue_labels():
    assert issue_timestamp(2023, 1) == "Jan 2023"
    assert issue_timestamp(1915, 12) == "Dec 1915"
    assert issue_volume(1) == "1"
    assert issue_volume(12) == "12"


def test_issue_period_properties():
    period = IssuePeriod(2021, 3)

    assert period.label == "Mar 2021"
    assert period.volume == "3"
    assert period.key == "2021-03"


def test_resolve_month_prefers_request_then_guess_then_january():
    assert resolve_month(5, 3) == 5
    assert resolve_month(None, 3) == 3
    assert resolve_month(None, None) == 1


def test_default_years_walk_back_to_first_issue():
    years = default_years()

    assert years[0] == 2023
    assert years[-1] == 1915
    assert len(years) == 109
