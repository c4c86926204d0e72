from fastapi import APIRouter

from backend.app.api.v1.endpoints import (
    bills,
    branches,
    closing_entries,
    dealers,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(branches.router, prefix="/branches", tags=["branches"])
api_router.include_router(dealers.router, prefix="/dealers", tags=["dealers"])
api_router.include_router(bills.router, prefix="/bills", tags=["bills"])
api_router.include_router(closing_entries.router, prefix="/closing-entries", tags=["closing-entries"])
