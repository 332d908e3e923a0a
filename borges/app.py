"""Wire a catalog service from configuration."""
import logging

from borges.client import GoogleBooksClient
from borges.config import Config
from borges.memory import InMemoryBookRepository
from borges.repository import BookRepository, SharedRepository
from borges.service import CatalogService

logger = logging.getLogger(__name__)


def build_repository(config: Config) -> BookRepository:
    """Create the storage backend selected by STORAGE_BACKEND."""
    backend = config.STORAGE_BACKEND.lower()

    if backend == "memory":
        logger.info("Using in-memory storage")
        return InMemoryBookRepository.with_sample_data()

    if backend == "postgres":
        # Imported here so memory mode works without a database driver
        from borges.database import PostgresBookRepository

        logger.info(f"Using PostgreSQL storage at {config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}")
        return PostgresBookRepository(
            config.DATABASE_URL,
            min_conn=config.DB_MIN_CONN,
            max_conn=config.DB_MAX_CONN
        )

    raise ValueError(f"Unknown STORAGE_BACKEND: {config.STORAGE_BACKEND}")


def build_service(config: Config, repository: BookRepository = None) -> CatalogService:
    """Create a CatalogService backed by the configured repository and Google Books."""
    if repository is None:
        repository = build_repository(config)

    client = GoogleBooksClient(
        api_key=config.GOOGLE_BOOKS_API_KEY,
        timeout=config.DEFAULT_TIMEOUT,
        max_retries=config.DEFAULT_MAX_RETRIES
    )
    return CatalogService(SharedRepository(repository), client)
