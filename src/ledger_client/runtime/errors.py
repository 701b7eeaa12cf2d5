"""
Ledger Client Error Model

This module provides the error handling framework for the ledger node client.
Every failure surfaced by the client is a LedgerClientError carrying an
ErrorCode, an optional details mapping and the underlying cause.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Client error codes."""

    OK = 0
    UNKNOWN = 1

    # Transport errors (100-199)
    TRANSPORT_ERROR = 100
    CONNECTION_FAILED = 101
    TIMEOUT = 102
    CHANNEL_CLOSED = 103

    # Call errors (200-299)
    CALL_ERROR = 200
    MISSING_METADATA = 201
    CONCURRENT_USE = 202

    # Decode errors (300-399)
    DECODE_ERROR = 300
    MISSING_FIELD = 301

    # Key errors (400-499)
    INVALID_KEYS = 400
    KEY_FILE_ERROR = 401

    # Submission errors (500-599)
    SUBMISSION_EXPIRED = 500


class LedgerClientError(Exception):
    """
    Base class for all client errors.

    Provides structured error information: a code, a message naming the
    failing operation, optional details and the cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a client error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class TransportError(LedgerClientError):
    """The connection could not be established or a call could not be dispatched."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.TRANSPORT_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class CallError(LedgerClientError):
    """
    The remote endpoint returned an explicit failure status.

    ``status`` holds the remote status name (``NOT_FOUND``, ``UNKNOWN``, ...).
    Missing or malformed response metadata is reported as a call error too.
    """

    def __init__(self, message: str, status: str = "UNKNOWN", code: ErrorCode = ErrorCode.CALL_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)
        self.status = status

    def __str__(self) -> str:
        return f"{super().__str__()} | Status: {self.status}"


class DecodeError(LedgerClientError):
    """A required field was absent or a value failed domain validation."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.DECODE_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class MissingFieldError(DecodeError):
    """A required field was absent from an otherwise successful response."""

    def __init__(self, field_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"missing field in response: {field_name}", ErrorCode.MISSING_FIELD,
                         {"field": field_name, **(details or {})})
        self.field_name = field_name


class InvalidKeysError(LedgerClientError):
    """The supplied keys do not satisfy the on-chain access structure."""

    def __init__(self, message: str = "Invalid keys supplied",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_KEYS, details, cause)


class KeyFileError(LedgerClientError):
    """A key file is missing, unreadable or does not hold a valid key pair."""

    def __init__(self, message: str, path: str, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.KEY_FILE_ERROR, {"path": path}, cause)
        self.path = path


class SubmissionExpiredError(LedgerClientError):
    """A submission was still not finalized after its expiry deadline."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.SUBMISSION_EXPIRED, details)


def error_from_response(status_code: int, body: Any, operation: str) -> CallError:
    """
    Create a CallError from a failed HTTP response.

    Args:
        status_code: HTTP status of the response
        body: Decoded JSON body, or None if the body was not JSON
        operation: Name of the remote method that failed

    Returns:
        CallError describing the failure
    """
    details = {"operation": operation, "http_status": status_code}

    if isinstance(body, dict) and "error" in body and isinstance(body["error"], dict):
        body = body["error"]

    if not isinstance(body, dict):
        return CallError(f"{operation} failed with HTTP {status_code}", details=details)

    status = body.get("code") or "UNKNOWN"
    message = body.get("message") or "Unknown error"
    if "data" in body:
        details["data"] = body["data"]

    return CallError(f"{operation} failed: {message}", status=str(status), details=details)


__all__ = [
    "ErrorCode",
    "LedgerClientError",
    "TransportError",
    "CallError",
    "DecodeError",
    "MissingFieldError",
    "InvalidKeysError",
    "KeyFileError",
    "SubmissionExpiredError",
    "error_from_response",
]
