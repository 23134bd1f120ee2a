"""
API v1 router configuration
"""

from fastapi import APIRouter
from api.v1.endpoints import cases, documents

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(cases.router, prefix="/cases", tags=["cases"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
