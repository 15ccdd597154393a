"""
Content CMS exceptions.

Every rejected operation raises a subclass of `CMSError`. Each carries the HTTP status the
API layer answers with; the FastAPI exception handler in `main.py` turns them into
`{"success": false, "message": ...}` responses.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from content_cms.utils.bulk_operations import BulkResult


class CMSError(Exception):
    """Base class for all CMS errors."""

    status_code: int = 500

    def __init__(self, message: str = "Content operation failed"):
        self.message = message
        super().__init__(self.message)


class CMSValidationError(CMSError):
    """Raised when request content is structurally invalid."""

    status_code = 400

    def __init__(self, message: str = "Invalid content"):
        super().__init__(message)


class InvalidFieldError(CMSValidationError):
    """
    Raised when a field definition violates the field schema rules.

    `field_path` is the dotted path to the offending definition, for example
    `testimonials.image` for the `image` child of the `testimonials` array.
    """

    def __init__(self, field_path: str, message: str):
        self.field_path = field_path
        super().__init__(f"Invalid field '{field_path}': {message}" if field_path else message)


class DuplicateNameError(CMSError):
    """Raised when a unique name (type name, component name, layout name, page slug) is taken."""

    status_code = 409

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} with name '{name}' already exists")


class NotFoundError(CMSError):
    """Raised when a referenced id or slug does not exist."""

    status_code = 404

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' not found")


class PartialBulkFailure(CMSError):
    """
    Raised when some items of a bulk write failed.

    Writes that succeeded are not rolled back. The error takes its message and status
    from the first failure and keeps every per-item outcome in `result`.
    """

    def __init__(self, result: "BulkResult"):
        self.result = result
        first = result.first_error
        self.status_code = getattr(first, "status_code", 500) if first is not None else 500
        detail = getattr(first, "message", str(first)) if first is not None else "unknown error"
        super().__init__(f"{len(result.failed)} of {len(result.items)} operations failed: {detail}")
