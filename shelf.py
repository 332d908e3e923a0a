#!/usr/bin/env python3
"""Shelf CLI - manage a reading catalog backed by Google Books."""
import argparse
import asyncio
import sys
import json
from dataclasses import asdict
from tabulate import tabulate
from borges.api import CatalogApi
from borges.app import build_service
from borges.async_client import AsyncGoogleBooksClient
from borges.config import Config
from borges.errors import CatalogError
from borges.models import AddBookInput, AddGoogleBookInput, AddNoteInput, ReadingStatus
import logging

logger = logging.getLogger(__name__)

STATUS_CHOICES = [status.as_str() for status in ReadingStatus]


def _status(value):
    return ReadingStatus.from_str(value) if value is not None else None


def _to_dict(entity):
    data = asdict(entity)
    if isinstance(data.get("status"), ReadingStatus):
        data["status"] = data["status"].as_str()
    return data


def display_books(books, format_type: str):
    """Display catalog books in specified format."""
    if format_type == "json":
        print(json.dumps([_to_dict(book) for book in books], indent=2))

    elif format_type == "compact":
        for book in books:
            print(f"{book.id}. {book.title} - {book.author} [{book.status.as_str()}]")

    else:
        headers = ["ID", "Title", "Author", "Year", "Pages", "Status"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author,
                book.year or "Unknown",
                book.pages,
                book.status.as_str()
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))


def display_results(results, format_type: str):
    """Display Google Books search results in specified format."""
    if format_type == "json":
        print(json.dumps([asdict(result) for result in results], indent=2))

    elif format_type == "compact":
        for i, result in enumerate(results, 1):
            print(f"{i}. {result.title} - {result.authors_str} ({result.external_id})")

    else:
        headers = ["Volume ID", "Title", "Authors", "Year", "Pages"]
        rows = [
            [
                result.external_id,
                result.title[:50] + "..." if len(result.title) > 50 else result.title,
                result.authors_str[:30] + "..." if len(result.authors_str) > 30 else result.authors_str,
                result.year or "Unknown",
                result.pages or "N/A"
            ]
            for result in results
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))


def display_notes(notes):
    rows = [[note.id, note.page if note.page is not None else "-", note.note] for note in notes]
    print(tabulate(rows, headers=["ID", "Page", "Note"], tablefmt="simple"))


def report(payload, entity):
    """Print a mutation payload; returns the process exit code."""
    if not payload.success:
        print(f"Failed: {payload.error}")
        return 1
    print(json.dumps(_to_dict(entity), indent=2))
    return 0


async def search_async(args, config: Config):
    """Search several queries at once with the async client."""
    async with AsyncGoogleBooksClient(
        api_key=config.GOOGLE_BOOKS_API_KEY,
        timeout=config.DEFAULT_TIMEOUT,
        max_concurrent=args.parallel
    ) as client:
        logger.info(f"Searching for: {args.query} (parallel={args.parallel})")
        return await client.search_multiple(args.query, max_results=args.limit)


def cmd_search(api: CatalogApi, args, config: Config):
    if args.use_async or len(args.query) > 1:
        results = asyncio.run(search_async(args, config))
    else:
        results = api.search(args.query[0], max_results=args.limit)

    logger.info(f"Found {len(results)} volumes")
    display_results(results[:args.limit * len(args.query)], args.format)
    return 0


def cmd_add(api: CatalogApi, args, config: Config):
    payload = api.add_book(AddBookInput(
        title=args.title,
        author=args.author,
        pages=args.pages,
        year=args.year,
        image_url=args.image_url,
        status=_status(args.status)
    ))
    return report(payload, payload.book)


def cmd_import(api: CatalogApi, args, config: Config):
    payload = api.add_google_book(AddGoogleBookInput(
        google_books_id=args.volume_id,
        title=args.title,
        author=args.author,
        image_url=args.image_url,
        year=args.year,
        pages=args.pages,
        status=_status(args.status)
    ))
    return report(payload, payload.book)


def cmd_show(api: CatalogApi, args, config: Config):
    book = api.book(book_id=args.id, title=args.title)
    if book is None:
        print("No matching book")
        return 1

    display_books([book], args.format)
    notes = api.notes(book.id)
    if notes:
        print()
        display_notes(notes)
    return 0


def cmd_list(api: CatalogApi, args, config: Config):
    display_books(api.books(_status(args.status)), args.format)
    return 0


def cmd_status(api: CatalogApi, args, config: Config):
    payload = api.update_book_status(args.book_id, _status(args.status))
    return report(payload, payload.book)


def cmd_note(api: CatalogApi, args, config: Config):
    payload = api.add_note(AddNoteInput(book_id=args.book_id, note=args.text, page=args.page))
    return report(payload, payload.note)


def cmd_notes(api: CatalogApi, args, config: Config):
    display_notes(api.notes(args.book_id))
    return 0


def cmd_init_db(api: CatalogApi, args, config: Config):
    with api.service.repository as repo:
        if not hasattr(repo, "init_schema"):
            print("Nothing to initialize for the in-memory backend")
            return 0
        repo.init_schema()
    print("✅ Database schema initialized")
    return 0


COMMANDS = {
    "search": cmd_search,
    "add": cmd_add,
    "import": cmd_import,
    "show": cmd_show,
    "list": cmd_list,
    "status": cmd_status,
    "note": cmd_note,
    "notes": cmd_notes,
    "init-db": cmd_init_db,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Shelf - personal reading catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Find a volume on Google Books
  %(prog)s search "collected fictions"

  # Import it, overriding the title
  %(prog)s import zyTCAlFPjgYC --title "Ficciones"

  # Track progress
  %(prog)s status 2 reading
  %(prog)s note 2 "Tlön, Uqbar, Orbis Tertius" --page 3
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")
    formats = ["table", "json", "compact"]

    search_parser = subparsers.add_parser("search", help="Search Google Books")
    search_parser.add_argument("query", nargs="+", help="Search query (several run in parallel)")
    search_parser.add_argument("--limit", type=int, default=10, help="Max results per query (default: 10)")
    search_parser.add_argument("--format", choices=formats, default="table", help="Output format")
    search_parser.add_argument("--parallel", type=int, default=5, help="Concurrent requests (default: 5)")
    search_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")

    add_parser = subparsers.add_parser("add", help="Add a book by hand")
    add_parser.add_argument("--title", required=True)
    add_parser.add_argument("--author", required=True)
    add_parser.add_argument("--pages", type=int, required=True)
    add_parser.add_argument("--year", type=int, default=0)
    add_parser.add_argument("--image-url")
    add_parser.add_argument("--status", choices=STATUS_CHOICES)

    import_parser = subparsers.add_parser("import", help="Add a book from Google Books")
    import_parser.add_argument("volume_id", help="Google Books volume id")
    import_parser.add_argument("--title")
    import_parser.add_argument("--author")
    import_parser.add_argument("--pages", type=int)
    import_parser.add_argument("--year", type=int)
    import_parser.add_argument("--image-url")
    import_parser.add_argument("--status", choices=STATUS_CHOICES)

    show_parser = subparsers.add_parser("show", help="Show a book and its notes")
    show_parser.add_argument("--id", type=int)
    show_parser.add_argument("--title")
    show_parser.add_argument("--format", choices=formats, default="table")

    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--status", choices=STATUS_CHOICES)
    list_parser.add_argument("--format", choices=formats, default="table")

    status_parser = subparsers.add_parser("status", help="Change a book's reading status")
    status_parser.add_argument("book_id", type=int)
    status_parser.add_argument("status", choices=STATUS_CHOICES)

    note_parser = subparsers.add_parser("note", help="Add a note to a book")
    note_parser.add_argument("book_id", type=int)
    note_parser.add_argument("text")
    note_parser.add_argument("--page", type=int)

    notes_parser = subparsers.add_parser("notes", help="List a book's notes")
    notes_parser.add_argument("book_id", type=int)

    subparsers.add_parser("init-db", help="Create the PostgreSQL schema")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        api = CatalogApi(build_service(config))
        sys.exit(COMMANDS[args.command](api, args, config))

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except CatalogError as e:
        logger.error(f"❌ Error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
