"""Tests for the PostgreSQL backend against a mocked connection pool."""
from unittest.mock import MagicMock

import psycopg2
from psycopg2 import pool
import pytest

from borges.database import PostgresBookRepository
from borges.errors import InvalidStatus, NotFound, StorageError
from borges.models import AddBookInput, AddNoteInput, Book, Note, ReadingStatus

BOOK_ROW = (1, "Collected Fictions", "Jorge Luis Borges", None, 1998, 565, "unread")


def make_repository():
    """Return a repository plus the mocked connection and cursor."""
    cursor = MagicMock()
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    connection_pool = MagicMock()
    connection_pool.getconn.return_value = conn

    return PostgresBookRepository(connection_pool=connection_pool), conn, cursor


def test_get_book_by_id():
    """Test that a row is mapped to a Book and the connection returned."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = BOOK_ROW

    book = repo.get_book_by_id(1)

    assert book == Book(1, "Collected Fictions", "Jorge Luis Borges", None, 1998, 565, ReadingStatus.UNREAD)
    sql, params = cursor.execute.call_args[0]
    assert "WHERE id = %s" in sql
    assert params == (1,)
    conn.commit.assert_called_once()
    repo.connection_pool.putconn.assert_called_once_with(conn)


def test_get_book_missing():
    """Test that a missing row is not an error."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = None

    assert repo.get_book_by_id(42) is None
    assert repo.get_book_by_title("Nothing") is None


def test_get_book_by_title_exact():
    """Test that the title is passed through untouched."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = BOOK_ROW

    repo.get_book_by_title(" Collected Fictions")

    sql, params = cursor.execute.call_args[0]
    assert "WHERE title = %s" in sql
    assert params == (" Collected Fictions",)


def test_list_books_filters_by_canonical_status():
    """Test that the status filter uses the canonical string."""
    repo, conn, cursor = make_repository()
    cursor.fetchall.return_value = [BOOK_ROW[:-1] + ("read",)]

    books = repo.list_books(ReadingStatus.READ)

    sql, params = cursor.execute.call_args[0]
    assert "WHERE status = %s ORDER BY id" in sql
    assert params == ("read",)
    assert books[0].status is ReadingStatus.READ


def test_list_books_unfiltered():
    """Test listing every book in primary key order."""
    repo, conn, cursor = make_repository()
    cursor.fetchall.return_value = []

    assert repo.list_books() == []
    assert "ORDER BY id" in cursor.execute.call_args[0][0]


def test_insert_book_uses_returning():
    """Test that an insert is one statement returning the new row."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = (2, "Ficciones", "Borges", None, 1944, 174, "unread")

    book = repo.insert_book(AddBookInput("Ficciones", "Borges", 174, year=1944))

    assert cursor.execute.call_count == 1
    sql, params = cursor.execute.call_args[0]
    assert "RETURNING" in sql
    assert params == ("Ficciones", "Borges", None, 1944, 174, "unread")
    assert book.id == 2
    assert book.status is ReadingStatus.UNREAD


def test_update_status():
    """Test that the update returns the changed row."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = BOOK_ROW[:-1] + ("reading",)

    book = repo.update_status(1, ReadingStatus.READING)

    assert cursor.execute.call_args[0][1] == ("reading", 1)
    assert book.status is ReadingStatus.READING


def test_update_status_unknown_book():
    """Test that updating no rows raises NotFound."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = None

    with pytest.raises(NotFound):
        repo.update_status(999, ReadingStatus.READ)


def test_notes():
    """Test note insertion and listing."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = (5, 1, "new note!", 3)
    cursor.fetchall.return_value = [(5, 1, "new note!", 3), (6, 1, "no page", None)]

    note = repo.insert_note(AddNoteInput(1, "new note!", page=3))
    notes = repo.list_notes(1)

    assert note == Note(5, 1, "new note!", 3)
    assert notes[1] == Note(6, 1, "no page", None)


def test_unknown_status_in_row():
    """Test that a non-canonical status string is rejected."""
    repo, conn, cursor = make_repository()
    cursor.fetchone.return_value = BOOK_ROW[:-1] + ("finished",)

    with pytest.raises(InvalidStatus):
        repo.get_book_by_id(1)


def test_driver_errors_become_storage_errors():
    """Test that driver failures roll back and surface as StorageError."""
    repo, conn, cursor = make_repository()
    cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

    with pytest.raises(StorageError) as exc:
        repo.insert_book(AddBookInput("Ficciones", "Borges", 174))

    assert isinstance(exc.value.__cause__, psycopg2.OperationalError)
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    repo.connection_pool.putconn.assert_called_once_with(conn, close=True)


def test_rollback_on_dead_connection():
    """Test that a failed rollback still surfaces as StorageError and drops the connection."""
    repo, conn, cursor = make_repository()
    cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")
    conn.rollback.side_effect = psycopg2.InterfaceError("connection already closed")

    with pytest.raises(StorageError) as exc:
        repo.list_books()

    assert isinstance(exc.value.__cause__, psycopg2.OperationalError)
    repo.connection_pool.putconn.assert_called_once_with(conn, close=True)


def test_integrity_error_keeps_connection():
    """Test that a constraint violation returns a healthy connection to the pool."""
    repo, conn, cursor = make_repository()
    cursor.execute.side_effect = psycopg2.IntegrityError("violates check constraint")

    with pytest.raises(StorageError):
        repo.insert_book(AddBookInput("Ficciones", "Borges", 174))

    conn.rollback.assert_called_once()
    repo.connection_pool.putconn.assert_called_once_with(conn)


def test_exhausted_pool():
    """Test that failing to get a connection is a StorageError."""
    repo, conn, cursor = make_repository()
    repo.connection_pool.getconn.side_effect = pool.PoolError("connection pool exhausted")

    with pytest.raises(StorageError):
        repo.list_notes(1)


def test_init_schema_creates_tables():
    """Test that the schema creates both tables."""
    repo, conn, cursor = make_repository()

    repo.init_schema()

    statements = " ".join(call[0][0] for call in cursor.execute.call_args_list)
    assert "CREATE TABLE IF NOT EXISTS books" in statements
    assert "CREATE TABLE IF NOT EXISTS notes" in statements
    conn.commit.assert_called_once()


def test_close():
    """Test that closing releases the pool."""
    repo, conn, cursor = make_repository()

    with repo:
        pass

    repo.connection_pool.closeall.assert_called_once()
