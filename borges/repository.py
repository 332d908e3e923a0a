"""Storage contract shared by every catalog backend."""
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

from borges.models import AddBookInput, AddNoteInput, Book, Note, ReadingStatus


class BookRepository(ABC):
    """
    Operations a storage backend must provide.

    Lookups return None rather than raising when nothing matches, and
    listings return an empty list. Backends report I/O faults as
    ``StorageError`` and never validate business rules themselves.
    """

    @abstractmethod
    def get_book_by_id(self, book_id: int) -> Optional[Book]:
        """Return the book with this id, or None."""

    @abstractmethod
    def get_book_by_title(self, title: str) -> Optional[Book]:
        """Return the book whose title matches exactly, or None."""

    @abstractmethod
    def list_books(self, status: Optional[ReadingStatus] = None) -> List[Book]:
        """List books, optionally only those with the given status."""

    @abstractmethod
    def insert_book(self, book: AddBookInput) -> Book:
        """Persist a new book and return it with its assigned id."""

    @abstractmethod
    def update_status(self, book_id: int, status: ReadingStatus) -> Book:
        """
        Change the status of a book.

        Raises:
            NotFound: If no book has this id
        """

    @abstractmethod
    def list_notes(self, book_id: int) -> List[Note]:
        """List the notes attached to a book."""

    @abstractmethod
    def insert_note(self, note: AddNoteInput) -> Note:
        """Persist a new note and return it with its assigned id."""


class SharedRepository:
    """
    Single lock-guarded handle around one repository.

    Only one caller at a time may use the wrapped repository::

        with handle as repo:
            book = repo.get_book_by_id(1)

    The lock is released when the block exits, including on errors.
    """

    def __init__(self, repository: BookRepository):
        self._repository = repository
        self._lock = threading.Lock()

    @property
    def repository(self) -> BookRepository:
        return self._repository

    def __enter__(self) -> BookRepository:
        self._lock.acquire()
        return self._repository

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._lock.release()
