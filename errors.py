"""
Error types raised by the BloodSync handlers and store.

Each error carries the HTTP status the API layer answers with.
"""


class BloodSyncError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(BloodSyncError):
    """Missing or malformed field, or a value outside its enum."""
    status_code = 400


class NotFoundError(BloodSyncError):
    status_code = 404


class StoreError(BloodSyncError):
    """Persistence or connectivity failure."""
    status_code = 500
