from typing import Any, Dict, List, Optional, Union

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def detail(self) -> Union[str, Dict[str, Any]]:
        """Payload handed to HTTPException; 5xx details never leak to the client."""
        if self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return "Internal server error"
        return self.message


class ValidationError(ServiceError):
    """Malformed or missing input that passed schema parsing (e.g. bad upload)."""

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None) -> None:
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.errors = errors or {}

    @property
    def detail(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class AuthenticationError(ServiceError):
    def __init__(self, message: str = "Could not validate credentials") -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class AuthorizationError(ServiceError):
    def __init__(self, message: str = "You are not allowed to perform this action") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFoundError(ServiceError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictError(ServiceError):
    """Business invariant violated: duplicate enrollment, past due date, blocked deletion."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class InternalError(ServiceError):
    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
