"""
SocialFeed Backend - Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the authentication gate; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    SocialFeedError (base)
    ├── ValidationError           → 400 Bad Request (client can fix)
    ├── ConflictError             → 400 Bad Request (email already registered)
    ├── InvalidCredentialsError   → 400 Bad Request (login rejected)
    ├── UnauthenticatedError      → 401 Unauthorized
    ├── InvalidTokenError         → folded into UnauthenticatedError by the gate
    ├── NotFoundError             → 404 Not Found
    ├── FileStorageError          → 500 Internal Server Error
    └── DatabaseError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class SocialFeedError(Exception):
    """
    Base exception for all SocialFeed application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, and returned as `details`
                  only by the 400-class handlers)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SocialFeedError):
    """
    Raised when client input fails a business rule.

    When:    Missing signup fields, a post with neither text nor image,
             unsupported image type or size.
    HTTP:    400 Bad Request

    Schema-level problems (wrong JSON types) are still reported by FastAPI as 422.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(SocialFeedError):
    """
    Raised when a unique identity attribute is already taken.

    When:    Signup with an email that already exists (exact, case-sensitive match).
    HTTP:    400 Bad Request, as existing clients expect.
    """

    def __init__(
        self,
        message: str = "Email already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(SocialFeedError):
    """
    Raised when login fails.

    Unknown email and wrong password produce the same message so the response
    does not reveal which accounts exist.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Invalid login credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthenticatedError(SocialFeedError):
    """
    Raised when a request needs a caller identity and none can be established.

    When:    Missing Authorization header, non-Bearer scheme, bad or expired
             token, or a token whose account no longer exists. All causes share
             one message.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Please authenticate.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(SocialFeedError):
    """
    Raised by the token service when a token cannot be verified.

    Malformed, wrongly signed, expired, or missing the account id claim.
    The authentication gate converts this into UnauthenticatedError, so it
    never reaches the client on its own.
    """

    def __init__(
        self,
        message: str = "Invalid session token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SocialFeedError):
    """
    Raised when a requested resource does not exist for this caller.

    When:    Post id unknown, or the post exists but belongs to another account
             on an owner-only operation. Both cases produce the same message.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "Post",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class FileStorageError(SocialFeedError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SocialFeedError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, or a post kept changing under us until
             the optimistic retry budget ran out.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
