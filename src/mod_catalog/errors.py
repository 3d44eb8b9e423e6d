"""Typed error kinds raised by the catalog services.

Each error carries the HTTP status the API layer reports it with, so routers
never have to translate service failures by hand.
"""


class CatalogError(Exception):
    status_code = 500
    kind = "catalog_error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(CatalogError):
    """A required field is empty, or holds a value the catalog cannot store."""

    status_code = 422
    kind = "validation_error"

    def __init__(self, field: str, label: str | None = None, detail: str | None = None) -> None:
        self.field = field
        super().__init__(detail or f"{label or field} is empty.")


class MalformedPayloadError(CatalogError):
    status_code = 400
    kind = "malformed_payload"


class UnsupportedFileTypeError(CatalogError):
    status_code = 415
    kind = "unsupported_file_type"


class StorageWriteError(CatalogError):
    kind = "storage_write_error"

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Unable to write asset to {path}: {cause}")


class PersistenceConflictError(CatalogError):
    status_code = 409
    kind = "persistence_conflict"


class NotFoundError(CatalogError):
    status_code = 404
    kind = "not_found"
