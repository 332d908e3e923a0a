"""Data models for the reading catalog."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from borges.errors import InvalidStatus


class ReadingStatus(Enum):
    """Where a book stands on the reading list."""
    UNREAD = "unread"
    READING = "reading"
    READ = "read"

    def as_str(self) -> str:
        """Canonical string stored in the database."""
        return self.value

    @classmethod
    def from_str(cls, value: str) -> "ReadingStatus":
        """
        Parse a canonical status string.

        Args:
            value: One of "unread", "reading" or "read" (case-sensitive)

        Returns:
            The matching ReadingStatus

        Raises:
            InvalidStatus: If the string is not a canonical status
        """
        for status in cls:
            if status.value == value:
                return status
        raise InvalidStatus(value)


@dataclass(frozen=True)
class Book:
    """A book stored in the catalog."""
    id: int
    title: str
    author: str
    image_url: Optional[str]
    year: int
    pages: int
    status: ReadingStatus = ReadingStatus.UNREAD


@dataclass(frozen=True)
class Note:
    """A note attached to a book, optionally pinned to a page."""
    id: int
    book_id: int
    note: str
    page: Optional[int] = None


@dataclass
class AddBookInput:
    """Fields needed to create a book by hand."""
    title: str
    author: str
    pages: int
    year: int = 0
    image_url: Optional[str] = None
    status: Optional[ReadingStatus] = None

    @property
    def effective_status(self) -> ReadingStatus:
        return self.status or ReadingStatus.UNREAD


@dataclass
class AddGoogleBookInput:
    """
    Import a book from Google Books.

    Every field other than ``google_books_id`` overrides the value
    fetched from the API when it is set.
    """
    google_books_id: str
    title: Optional[str] = None
    author: Optional[str] = None
    image_url: Optional[str] = None
    year: Optional[int] = None
    pages: Optional[int] = None
    status: Optional[ReadingStatus] = None


@dataclass
class AddNoteInput:
    book_id: int
    note: str
    page: Optional[int] = None


@dataclass
class Volume:
    """Metadata for a single Google Books volume."""
    title: str
    authors: List[str] = field(default_factory=list)
    page_count: int = 0
    published_date: str = ""
    cover_url: Optional[str] = None


@dataclass
class SearchResult:
    """A Google Books search hit."""
    external_id: str
    title: str
    authors: List[str]
    pages: int
    year: int
    image_url: Optional[str] = None

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"


@dataclass
class AddBookPayload:
    book: Optional[Book] = None
    success: bool = False
    error: Optional[str] = None


@dataclass
class AddNotePayload:
    note: Optional[Note] = None
    success: bool = False
    error: Optional[str] = None


@dataclass
class UpdateBookStatusPayload:
    book: Optional[Book] = None
    success: bool = False
    error: Optional[str] = None
