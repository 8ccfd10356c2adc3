from fastapi import APIRouter
from apikey_service.api.endpoints import keys, admin

api_router = APIRouter()

api_router.include_router(keys.router, tags=["keys"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
