"""Error kinds surfaced by the retention entry points."""
from typing import Optional

from fastapi import HTTPException, status


class UnauthenticatedError(HTTPException):
    """Caller has no identity."""
    def __init__(self, message: str = "User must be authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unauthenticated", "message": message},
        )


class PermissionDeniedError(HTTPException):
    """Caller lacks the admin grant."""
    def __init__(self, message: str = "User does not have admin permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "permission_denied", "message": message},
        )


class InternalCleanupError(HTTPException):
    """A cleanup run failed part-way; targets processed before the failure stay deleted."""
    def __init__(self, message: str = "Failed to perform manual cleanup", cause: Optional[BaseException] = None):
        detail = {"error": "internal", "message": message}
        if cause is not None:
            detail["cause"] = str(cause)
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )
        self.cause = cause
