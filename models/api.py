"""Envelope model for REST API responses."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Response envelope: ``{success, message, data}``."""

    success: bool
    message: str = ""
    data: Any = None
    error: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None
    timestamp: Optional[str] = Field(None, description="Server timestamp")
