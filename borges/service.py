"""Business rules for the reading catalog."""
import logging
from typing import List, Optional, Protocol, TypeVar

from borges.errors import InvalidInput
from borges.models import (
    AddBookInput,
    AddGoogleBookInput,
    AddNoteInput,
    Book,
    Note,
    ReadingStatus,
    SearchResult,
    Volume,
)
from borges.parse import parse_year
from borges.repository import SharedRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetadataSource(Protocol):
    """Remote book metadata lookup, e.g. ``GoogleBooksClient``."""

    def fetch_by_external_id(self, volume_id: str) -> Volume:
        ...

    def search_books(self, query: str, max_results: int = 10) -> List[SearchResult]:
        ...


def resolve(override: Optional[T], fallback: T) -> T:
    """
    Pick the effective value of an imported field.

    A caller-supplied override always wins, even when falsy (an empty
    string or 0); only ``None`` falls back to the external value.
    """
    return override if override is not None else fallback


def _invalid(reason: str) -> InvalidInput:
    logger.warning(f"Rejected request: {reason}")
    return InvalidInput(reason)


class CatalogService:
    """
    Validates requests and coordinates repository calls.

    All repository access goes through the shared handle, so each
    operation runs while holding the catalog lock. The only work done
    outside the lock is the metadata fetch of an import.
    """

    def __init__(self, repository: SharedRepository, metadata: MetadataSource):
        self.repository = repository
        self.metadata = metadata

    def add_book(self, book: AddBookInput) -> Book:
        """
        Add a book to the catalog.

        Raises:
            InvalidInput: If the page count is below 1 or the title is blank
        """
        if book.pages < 1:
            raise _invalid("pages < 1")
        if not book.title.strip():
            raise _invalid("empty title")

        with self.repository as repo:
            created = repo.insert_book(book)

        logger.info(f"Added book {created.id}: {created.title}")
        return created

    def add_book_from_external(self, request: AddGoogleBookInput) -> Book:
        """
        Import a book from the metadata service.

        Fields set on the request take precedence over the fetched
        metadata. The author falls back to the first listed author and
        the year to the start of the published date.

        Raises:
            ExternalLookupFailed: If the volume cannot be fetched
            InvalidInput: If no author is known or the page count is below 1
        """
        # Fetched without the catalog lock; the insert below takes it again
        volume = self.metadata.fetch_by_external_id(request.google_books_id)

        if request.author is not None:
            author = request.author
        elif volume.authors:
            author = volume.authors[0]
        else:
            raise _invalid("no author")

        effective = AddBookInput(
            title=resolve(request.title, volume.title),
            author=author,
            pages=resolve(request.pages, volume.page_count),
            year=resolve(request.year, parse_year(volume.published_date)),
            image_url=resolve(request.image_url, volume.cover_url),
            status=resolve(request.status, ReadingStatus.UNREAD),
        )
        return self.add_book(effective)

    def get_book(self, book_id: Optional[int] = None, title: Optional[str] = None) -> Optional[Book]:
        """
        Look a book up by id or by exact title.

        The id is used when both are given.

        Raises:
            InvalidInput: If neither selector is supplied
        """
        if book_id is None and title is None:
            raise _invalid("missing selector")

        with self.repository as repo:
            if book_id is not None:
                return repo.get_book_by_id(book_id)
            return repo.get_book_by_title(title)

    def list_books(self, status: Optional[ReadingStatus] = None) -> List[Book]:
        with self.repository as repo:
            return repo.list_books(status)

    def update_status(self, book_id: int, status: ReadingStatus) -> Book:
        with self.repository as repo:
            updated = repo.update_status(book_id, status)

        logger.info(f"Book {book_id} is now {status.as_str()}")
        return updated

    def add_note(self, note: AddNoteInput) -> Note:
        """
        Attach a note to an existing book.

        Raises:
            InvalidInput: If the book does not exist or the page is
                outside 1..book.pages
        """
        with self.repository as repo:
            book = repo.get_book_by_id(note.book_id)
            if book is None:
                raise _invalid("book not found")

            if note.page is not None:
                if note.page > book.pages:
                    raise _invalid("page too high")
                if note.page < 1:
                    raise _invalid("page too low")

            created = repo.insert_note(note)

        logger.info(f"Added note {created.id} to book {created.book_id}")
        return created

    def list_notes(self, book_id: int) -> List[Note]:
        with self.repository as repo:
            return repo.list_notes(book_id)

    def search(self, query: str, max_results: int = 10) -> List[SearchResult]:
        """Search the metadata service. Does not touch the catalog."""
        return self.metadata.search_books(query, max_results=max_results)
