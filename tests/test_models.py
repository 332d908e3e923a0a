"""Tests for the entity model."""
import pytest

from borges.errors import InvalidStatus
from borges.models import AddBookInput, ReadingStatus


def test_status_round_trip():
    """Test that every status survives a trip through its string form."""
    for status in ReadingStatus:
        assert ReadingStatus.from_str(status.as_str()) is status


def test_status_canonical_strings():
    """Test the exact strings written to storage."""
    assert [s.as_str() for s in ReadingStatus] == ["unread", "reading", "read"]


@pytest.mark.parametrize("value", ["Read", "READ", "finished", "", " read"])
def test_status_rejects_unknown_strings(value):
    """Test that parsing is case-sensitive and has no fallback."""
    with pytest.raises(InvalidStatus) as exc:
        ReadingStatus.from_str(value)
    assert exc.value.value == value


def test_add_book_input_defaults_to_unread():
    """Test that an input without a status is stored as unread."""
    book = AddBookInput(title="Ficciones", author="Jorge Luis Borges", pages=174)

    assert book.year == 0
    assert book.image_url is None
    assert book.effective_status is ReadingStatus.UNREAD
    assert AddBookInput("A", "B", 1, status=ReadingStatus.READ).effective_status is ReadingStatus.READ
