"""
Query and mutation façade in front of the catalog service.

Queries return entities directly. Mutations return payload objects
with a ``success`` flag: a request the caller can fix (bad input, an
unknown book, a failed metadata lookup) yields ``success=False`` and
the error message instead of an exception. Storage faults still raise.
"""
import logging
from typing import List, Optional

from borges.errors import ExternalLookupFailed, InvalidInput, NotFound
from borges.models import (
    AddBookInput,
    AddBookPayload,
    AddGoogleBookInput,
    AddNoteInput,
    AddNotePayload,
    Book,
    Note,
    ReadingStatus,
    SearchResult,
    UpdateBookStatusPayload,
)
from borges.service import CatalogService

logger = logging.getLogger(__name__)

RECOVERABLE_ERRORS = (InvalidInput, NotFound, ExternalLookupFailed)


class CatalogApi:
    """
    Entry point for clients of the catalog.

    Wraps a CatalogService. Lookups pass straight through; mutations
    catch recoverable errors and report them in their payload.
    """

    def __init__(self, service: CatalogService):
        self.service = service

    # Queries

    def book(self, book_id: Optional[int] = None, title: Optional[str] = None) -> Optional[Book]:
        return self.service.get_book(book_id=book_id, title=title)

    def books(self, status: Optional[ReadingStatus] = None) -> List[Book]:
        return self.service.list_books(status)

    def notes(self, book_id: int) -> List[Note]:
        return self.service.list_notes(book_id)

    def search(self, query: str, max_results: int = 10) -> List[SearchResult]:
        return self.service.search(query, max_results=max_results)

    # Mutations

    def add_book(self, book: AddBookInput) -> AddBookPayload:
        try:
            return AddBookPayload(book=self.service.add_book(book), success=True)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"addBook failed: {e}")
            return AddBookPayload(error=str(e))

    def add_google_book(self, request: AddGoogleBookInput) -> AddBookPayload:
        try:
            book = self.service.add_book_from_external(request)
            return AddBookPayload(book=book, success=True)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"addGoogleBook failed for {request.google_books_id}: {e}")
            return AddBookPayload(error=str(e))

    def update_book_status(self, book_id: int, status: ReadingStatus) -> UpdateBookStatusPayload:
        try:
            book = self.service.update_status(book_id, status)
            return UpdateBookStatusPayload(book=book, success=True)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"updateBookStatus failed for book {book_id}: {e}")
            return UpdateBookStatusPayload(error=str(e))

    def add_note(self, note: AddNoteInput) -> AddNotePayload:
        try:
            return AddNotePayload(note=self.service.add_note(note), success=True)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"addNote failed for book {note.book_id}: {e}")
            return AddNotePayload(error=str(e))
