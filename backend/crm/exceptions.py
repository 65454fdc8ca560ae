# backend/crm/exceptions.py


class CRMError(Exception):
    """Base exception for the CRM backend."""


class ValidationError(CRMError):
    """Raised when input data is missing or invalid."""


class NotFoundError(CRMError):
    """Raised when an operation targets a document that does not exist."""


class StoreUnavailableError(CRMError):
    """Raised when the document store fails a read or write."""


class MissingIndexError(StoreUnavailableError):
    """Raised when a query needs a composite index that is not provisioned."""
