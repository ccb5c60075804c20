"""Generic API response schemas"""

from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """Body of every error response"""
    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None
    path: Optional[str] = None
    timestamp: str
