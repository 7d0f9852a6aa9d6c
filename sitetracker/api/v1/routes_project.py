# File: sitetracker/api/v1/routes_project.py

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from sitetracker.api.deps import get_dashboard, get_data, require_permission
from sitetracker.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from sitetracker.core.permissions import Permission
from sitetracker.schemas.project import FailureReason, OperationResult, Project, ProjectForm, ProjectStats
from sitetracker.services.dashboard import Dashboard
from sitetracker.services.data_service import DataService

router = APIRouter()

can_view = require_permission(Permission.VIEW_PROJECTS)


def _raise_for(result: OperationResult) -> None:
    if result.success:
        return
    if result.reason == FailureReason.NOT_FOUND:
        raise NotFoundError(result.site_code)
    if result.reason == FailureReason.DUPLICATE:
        raise DuplicateKeyError(result.site_code, result.errors)
    raise ValidationError(result.errors)


@router.get("/", response_model=list[Project], summary="List projects")
async def list_projects(
    q: str = "",
    status_filter: str = Query("all", alias="status"),
    data: DataService = Depends(get_data),
    _user: dict = Depends(can_view),
):
    """Optional case-insensitive text search and status filter (all / Done / Pending)."""
    if status_filter.lower() not in ("all", "done", "pending"):
        raise HTTPException(status_code=400, detail=f"Unknown status filter: {status_filter}")
    return data.search_projects(q, status_filter)


@router.get("/recent", response_model=list[Project], summary="Most recently added projects")
async def recent_projects(
    limit: int = Query(5, ge=1, le=100),
    data: DataService = Depends(get_data),
    _user: dict = Depends(can_view),
):
    return data.get_recent_projects(limit)


@router.get("/stats", response_model=ProjectStats, summary="Status and province counts")
async def project_stats(
    data: DataService = Depends(get_data),
    _user: dict = Depends(require_permission(Permission.VIEW_DASHBOARD)),
):
    return data.get_stats()


@router.get("/export", summary="Download all projects as CSV")
async def export_projects(
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(require_permission(Permission.EXPORT_DATA)),
):
    download = dashboard.export_projects()
    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": f'attachment; filename="{download.filename}"'},
    )


@router.get("/{site_code}", response_model=Project, summary="Get one project")
async def get_project(
    site_code: str,
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(can_view),
):
    project = dashboard.view_project(site_code)
    if project is None:
        raise NotFoundError(site_code)
    return project


@router.post(
    "/",
    response_model=Project,
    status_code=status.HTTP_201_CREATED,
    summary="Create project (manual entry)",
)
async def create_project(
    payload: ProjectForm,
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(require_permission(Permission.ADD_PROJECT)),
):
    result = dashboard.handle_manual_entry(payload.model_dump(exclude_none=True))
    _raise_for(result)
    return dashboard.view_project(payload.site_code.strip())


@router.put("/{site_code}", response_model=Project, summary="Replace project")
async def replace_project(
    site_code: str,
    payload: ProjectForm,
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(require_permission(Permission.EDIT_PROJECT)),
):
    """Full replacement; there is no partial update."""
    result = dashboard.replace_project(site_code, payload.model_dump(exclude_none=True))
    _raise_for(result)
    return dashboard.view_project(payload.site_code.strip())


@router.delete("/{site_code}", response_model=OperationResult, summary="Delete project")
async def delete_project(
    site_code: str,
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(require_permission(Permission.DELETE_PROJECT)),
):
    result = dashboard.delete_project(site_code)
    _raise_for(result)
    return result
