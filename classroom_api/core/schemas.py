from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope shared by every endpoint: {status, message?, data?}."""

    status: str = "success"
    message: Optional[str] = None
    data: Optional[DataT] = None


class ErrorResponse(BaseModel):
    """Error envelope rendered by the app-level exception handlers."""

    status: str = "error"
    message: str
    errors: Optional[Dict[str, List[str]]] = None


def strip_text(v: Any) -> Any:
    """Trim surrounding whitespace so min_length rejects blank strings."""
    if isinstance(v, str):
        return v.strip()
    return v
