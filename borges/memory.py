"""In-memory catalog backend, used for tests and database-less runs."""
import dataclasses
import logging
from typing import Dict, Iterable, List, Optional

from borges.errors import NotFound
from borges.models import AddBookInput, AddNoteInput, Book, Note, ReadingStatus
from borges.repository import BookRepository

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    Book(
        id=1,
        title="Collected Fictions",
        author="Jorge Luis Borges",
        image_url=None,
        year=1998,
        pages=565,
    ),
]


class InMemoryBookRepository(BookRepository):
    """Keeps books in an insertion-ordered dict and notes in a list."""

    def __init__(
        self,
        books: Optional[Iterable[Book]] = None,
        notes: Optional[Iterable[Note]] = None
    ):
        self._books: Dict[int, Book] = {book.id: book for book in books or []}
        self._notes: List[Note] = list(notes or [])

        # Ids continue above anything that was seeded
        self._next_book_id = max(self._books, default=0) + 1
        self._next_note_id = max((n.id for n in self._notes), default=0) + 1

    @classmethod
    def with_sample_data(cls) -> "InMemoryBookRepository":
        """Create a repository holding the sample books."""
        return cls(books=SAMPLE_BOOKS)

    def get_book_by_id(self, book_id: int) -> Optional[Book]:
        return self._books.get(book_id)

    def get_book_by_title(self, title: str) -> Optional[Book]:
        return next((b for b in self._books.values() if b.title == title), None)

    def list_books(self, status: Optional[ReadingStatus] = None) -> List[Book]:
        if status is None:
            return list(self._books.values())
        return [b for b in self._books.values() if b.status is status]

    def insert_book(self, book: AddBookInput) -> Book:
        created = Book(
            id=self._next_book_id,
            title=book.title,
            author=book.author,
            image_url=book.image_url,
            year=book.year,
            pages=book.pages,
            status=book.effective_status,
        )
        self._books[created.id] = created
        self._next_book_id += 1

        logger.debug(f"Stored book {created.id} in memory")
        return created

    def update_status(self, book_id: int, status: ReadingStatus) -> Book:
        book = self._books.get(book_id)
        if book is None:
            raise NotFound(f"No book with id {book_id}")

        updated = dataclasses.replace(book, status=status)
        self._books[book_id] = updated
        return updated

    def list_notes(self, book_id: int) -> List[Note]:
        return [n for n in self._notes if n.book_id == book_id]

    def insert_note(self, note: AddNoteInput) -> Note:
        created = Note(
            id=self._next_note_id,
            book_id=note.book_id,
            note=note.note,
            page=note.page,
        )
        self._notes.append(created)
        self._next_note_id += 1
        return created
