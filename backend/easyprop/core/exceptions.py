from typing import Any, Dict, Optional
from fastapi import HTTPException, status

class EasyPropException(Exception):
    """Base exception for the EasyProp backend."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details
        }

class NotFoundException(EasyPropException):
    """Requested record does not exist (or is not visible to the caller)."""
    status_code = status.HTTP_404_NOT_FOUND
    default_error_code = "RESOURCE_NOT_FOUND"

class ValidationException(EasyPropException):
    """Exception for data validation errors."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_error_code = "VALIDATION_ERROR"

class PermissionException(EasyPropException):
    status_code = status.HTTP_403_FORBIDDEN
    default_error_code = "FORBIDDEN"

class AuthenticationException(EasyPropException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_error_code = "UNAUTHENTICATED"

class DatabaseException(EasyPropException):
    """Exception for database-related errors."""
    pass

class StorageException(EasyPropException):
    """Exception for file storage errors."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_error_code = "STORAGE_ERROR"

class ToursUnavailableException(EasyPropException):
    """The tours table has not been migrated yet."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_error_code = "TOURS_TABLE_MISSING"

class ConfigurationException(EasyPropException):
    """Exception for configuration-related errors."""
    pass

# HTTP Exception handlers
def create_http_exception(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> HTTPException:
    """Create an HTTP exception with structured error response."""

    error_detail = {
        "message": message,
        "error_code": error_code,
        "details": details or {}
    }

    return HTTPException(
        status_code=status_code,
        detail=error_detail
    )

def internal_server_exception(message: str = "Internal server error") -> HTTPException:
    return create_http_exception(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=message,
        error_code="INTERNAL_SERVER_ERROR"
    )
