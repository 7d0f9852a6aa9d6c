# File: sitetracker/api/v1/routes_import.py

"""
CSV import in two steps: upload (parse + validate, nothing stored) and
commit (append the accepted rows). Also serves the template and the error
report of the last upload.
"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from pydantic import BaseModel

from sitetracker.api.deps import get_dashboard, require_permission
from sitetracker.core.permissions import Permission
from sitetracker.schemas.imports import ImportSummary
from sitetracker.schemas.project import Project
from sitetracker.services.dashboard import Dashboard, Download

router = APIRouter()

can_import = require_permission(Permission.ADD_PROJECT)

# Anything past this many bytes is refused without being read
MAX_UPLOAD_SIZE = 5 * 1024 * 1024


class UploadResponse(BaseModel):
    filename: str
    summary: ImportSummary
    ready: List[Project]


class CommitResponse(BaseModel):
    imported: int


def _download(download: Download) -> Response:
    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": f'attachment; filename="{download.filename}"'},
    )


@router.post("/upload", response_model=UploadResponse, summary="Validate a CSV file")
async def upload_csv(
    file: UploadFile = File(...),
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(can_import),
):
    content = await file.read(MAX_UPLOAD_SIZE + 1)
    if len(content) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {MAX_UPLOAD_SIZE // (1024 * 1024)} MB limit",
        )

    validation = dashboard.handle_file_upload(file.filename or "", content)
    if validation is None:
        raise HTTPException(status_code=400, detail=dashboard.upload_error)

    return UploadResponse(
        filename=file.filename or "",
        summary=validation.summary(dashboard.error_display_limit),
        ready=validation.valid_projects,
    )


@router.post("/commit", response_model=CommitResponse, summary="Import the validated rows")
async def commit_import(
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(can_import),
):
    if not dashboard.pending_import:
        raise HTTPException(status_code=400, detail="No valid data to import")
    return CommitResponse(imported=dashboard.import_validated_data())


@router.get("/errors", summary="Download the error report of the last upload")
async def error_report(
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(can_import),
):
    download = dashboard.download_error_report()
    if download is None:
        raise HTTPException(status_code=404, detail="No error report to download")
    return _download(download)


@router.get("/template", summary="Download the import template")
async def import_template(
    dashboard: Dashboard = Depends(get_dashboard),
    _user: dict = Depends(can_import),
):
    return _download(dashboard.download_template())
