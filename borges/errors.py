"""Error kinds raised by the catalog."""


class CatalogError(Exception):
    """Base class for every catalog failure."""


class InvalidInput(CatalogError):
    """The request broke a business rule and can be corrected by the caller."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotFound(CatalogError):
    """A specifically addressed entity does not exist."""


class StorageError(CatalogError):
    """The storage backend failed to complete an operation."""


class ExternalLookupFailed(CatalogError):
    """The metadata service could not produce a result."""


class InvalidStatus(CatalogError):
    """A status string did not match any ReadingStatus."""

    def __init__(self, value: str):
        super().__init__(f"Invalid reading status: {value!r}")
        self.value = value
