"""Errors raised by the result-access services.

Each carries the HTTP status and the generic message shown to clients. The
detailed cause stays in the server log.
"""

from fastapi import status


class ResultAccessError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Server error"


class InvalidRequest(ResultAccessError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Exam number and PIN are required"


class ResultNotFound(ResultAccessError):
    """No record matches the credential pair (never says which field was wrong)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid exam number or PIN"


class InvalidGrant(ResultAccessError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Access denied"

    MISSING = "missing"
    UNKNOWN = "unknown"
    EXPIRED = "expired"
    SCOPE_MISMATCH = "scope_mismatch"
    RECORD_MISSING = "record_missing"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class FileMissing(ResultAccessError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Result file not found"

    def __init__(self, result_id: int, file_path: str):
        super().__init__(f"file for result {result_id} missing: {file_path}")
        self.result_id = result_id
        self.file_path = file_path


class StorageError(ResultAccessError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Server error"
