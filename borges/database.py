"""PostgreSQL catalog backend with connection pooling."""
import psycopg2
from psycopg2 import pool
from contextlib import contextmanager
from typing import Optional, List, Tuple, Any
import logging

from borges.errors import NotFound, StorageError
from borges.models import AddBookInput, AddNoteInput, Book, Note, ReadingStatus
from borges.repository import BookRepository

logger = logging.getLogger(__name__)

BOOK_COLUMNS = "id, title, author, image_url, year, pages, status"
NOTE_COLUMNS = "id, book_id, note, page"


def _row_to_book(row: Tuple[Any, ...]) -> Book:
    book_id, title, author, image_url, year, pages, status = row
    return Book(
        id=book_id,
        title=title,
        author=author,
        image_url=image_url,
        year=year,
        pages=pages,
        status=ReadingStatus.from_str(status),
    )


def _row_to_note(row: Tuple[Any, ...]) -> Note:
    return Note(*row)


class PostgresBookRepository(BookRepository):
    """PostgreSQL backend. Every operation is a single round trip."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        min_conn: int = 1,
        max_conn: int = 5,
        connection_pool: Optional[pool.AbstractConnectionPool] = None
    ):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
            connection_pool: Existing pool to use instead of creating one
        """
        if connection_pool is not None:
            self.connection_pool = connection_pool
            return

        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            logger.error(f"Failed to create connection pool: {e}")
            raise StorageError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def _rollback(self, conn) -> bool:
        """Roll back, returning False if the connection is unusable."""
        try:
            conn.rollback()
            return True
        except psycopg2.Error as e:
            logger.error(f"Rollback failed: {e}")
            return False

    @contextmanager
    def _cursor(self):
        """
        Yield a cursor on a pooled connection.

        Commits when the block succeeds and rolls back otherwise. Driver
        errors are reported as StorageError. Connections that died are
        closed instead of going back to the pool.
        """
        try:
            conn = self.connection_pool.getconn()
        except psycopg2.Error as e:
            logger.error(f"Could not get a database connection: {e}")
            raise StorageError(f"Could not get a database connection: {e}") from e

        broken = False
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            broken = isinstance(e, (psycopg2.OperationalError, psycopg2.InterfaceError))
            if not self._rollback(conn):
                broken = True
            logger.error(f"Database operation failed: {e}")
            raise StorageError(f"Database operation failed: {e}") from e
        except Exception:
            if not self._rollback(conn):
                broken = True
            raise
        finally:
            if broken:
                self.connection_pool.putconn(conn, close=True)
            else:
                self.connection_pool.putconn(conn)

    def init_schema(self):
        """Create database tables if they don't exist."""
        with self._cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS books (
                    id SERIAL PRIMARY KEY,
                    title TEXT NOT NULL,
                    author TEXT NOT NULL,
                    image_url TEXT,
                    year INTEGER NOT NULL DEFAULT 0,
                    pages INTEGER NOT NULL CHECK (pages >= 1),
                    status TEXT NOT NULL DEFAULT 'unread'
                        CHECK (status IN ('unread', 'reading', 'read'))
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS notes (
                    id SERIAL PRIMARY KEY,
                    book_id INTEGER NOT NULL REFERENCES books (id),
                    note TEXT NOT NULL,
                    page INTEGER
                )
            """)

            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_notes_book_id
                ON notes (book_id)
            """)

        logger.info("Database schema initialized successfully")

    def get_book_by_id(self, book_id: int) -> Optional[Book]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE id = %s",
                (book_id,)
            )
            row = cur.fetchone()
        return _row_to_book(row) if row else None

    def get_book_by_title(self, title: str) -> Optional[Book]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE title = %s ORDER BY id LIMIT 1",
                (title,)
            )
            row = cur.fetchone()
        return _row_to_book(row) if row else None

    def list_books(self, status: Optional[ReadingStatus] = None) -> List[Book]:
        with self._cursor() as cur:
            if status is None:
                cur.execute(f"SELECT {BOOK_COLUMNS} FROM books ORDER BY id")
            else:
                cur.execute(
                    f"SELECT {BOOK_COLUMNS} FROM books WHERE status = %s ORDER BY id",
                    (status.as_str(),)
                )
            rows = cur.fetchall()
        return [_row_to_book(row) for row in rows]

    def insert_book(self, book: AddBookInput) -> Book:
        with self._cursor() as cur:
            cur.execute(f"""
                INSERT INTO books (title, author, image_url, year, pages, status)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {BOOK_COLUMNS}
            """, (
                book.title, book.author, book.image_url, book.year,
                book.pages, book.effective_status.as_str()
            ))
            row = cur.fetchone()

        created = _row_to_book(row)
        logger.info(f"Inserted book {created.id}: {created.title}")
        return created

    def update_status(self, book_id: int, status: ReadingStatus) -> Book:
        with self._cursor() as cur:
            cur.execute(f"""
                UPDATE books SET status = %s
                WHERE id = %s
                RETURNING {BOOK_COLUMNS}
            """, (status.as_str(), book_id))
            row = cur.fetchone()

        if row is None:
            raise NotFound(f"No book with id {book_id}")
        return _row_to_book(row)

    def list_notes(self, book_id: int) -> List[Note]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {NOTE_COLUMNS} FROM notes WHERE book_id = %s ORDER BY id",
                (book_id,)
            )
            rows = cur.fetchall()
        return [_row_to_note(row) for row in rows]

    def insert_note(self, note: AddNoteInput) -> Note:
        with self._cursor() as cur:
            cur.execute(f"""
                INSERT INTO notes (book_id, note, page)
                VALUES (%s, %s, %s)
                RETURNING {NOTE_COLUMNS}
            """, (note.book_id, note.note, note.page))
            row = cur.fetchone()

        created = _row_to_note(row)
        logger.info(f"Inserted note {created.id} for book {created.book_id}")
        return created

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
