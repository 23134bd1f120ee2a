"""
Base schemas and response models
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, UTC

class BaseResponse(BaseModel):
    """Base API response model"""
    erfolg: bool = True
    nachricht: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

class HealthCheck(BaseModel):
    """Health check response"""
    status: str = "healthy"
    database: str = "connected"
    object_storage: str = "connected"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
