from fastapi import APIRouter
from app.api.v1.endpoints import admin, backups, catalog, maintenance, pricing

api_router = APIRouter()

api_router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
# backups/pricing/maintenance antes de admin: DELETE /admin/{kind} capturaria /admin/backups
api_router.include_router(backups.router, prefix="/admin", tags=["backups"])
api_router.include_router(pricing.router, prefix="/admin", tags=["pricing"])
api_router.include_router(maintenance.router, prefix="/admin", tags=["maintenance"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
