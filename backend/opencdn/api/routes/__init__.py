"""API route registration."""

from fastapi import APIRouter

from opencdn.api.routes import admin, files, folders, health, info

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(info.router, tags=["info"])
api_router.include_router(files.router, tags=["files"])
api_router.include_router(folders.router, prefix="/folder", tags=["folders"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
