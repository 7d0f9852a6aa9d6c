from fastapi import APIRouter

from sitetracker.api.v1.routes_auth import router as auth_router
from sitetracker.api.v1.routes_import import router as import_router
from sitetracker.api.v1.routes_project import router as project_router


api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(project_router, prefix="/projects", tags=["projects"])
api_router.include_router(import_router, prefix="/import", tags=["import"])
