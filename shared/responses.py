from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Standard {success, message, data} wrapper returned by every endpoint."""

    success: bool = True
    message: str
    data: Optional[T] = None


def ok(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": data}


def fail(message: str) -> dict:
    return {"success": False, "message": message, "data": None}
