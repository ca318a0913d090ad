class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when request input fails validation before reaching the store."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str = "Resource", id: str = ""):
        super().__init__(f"{resource} not found: {id}" if id else f"{resource} not found")


class ConflictError(AppError):
    """Raised on optimistic locking conflicts (stale index revision)."""

    def __init__(self, message: str = "Index was modified by another writer"):
        super().__init__(message)


class BackingMediumUnavailableError(AppError):
    """Raised when the persistence layer cannot be read or written."""

    def __init__(self, message: str = "Backing medium unavailable"):
        super().__init__(message)


class InconsistentIndexError(AppError):
    """Raised when an index entry references a payload that cannot be fetched."""

    def __init__(self, slug: str, payload_key: str):
        self.slug = slug
        self.payload_key = payload_key
        super().__init__(f"Index entry {slug} references missing payload {payload_key}")
