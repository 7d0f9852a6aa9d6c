# File: sitetracker/schemas/imports.py

from typing import List, Optional

from pydantic import BaseModel

from sitetracker.schemas.project import Project


class RowValidation(BaseModel):
    row_index: Optional[int] = None
    site_code: str = ""
    project_name: str = ""
    status: str = ""
    valid: bool
    duplicate: bool = False
    project: Optional[Project] = None
    errors: List[str] = []
    warnings: List[str] = []


class ImportSummary(BaseModel):
    valid_count: int
    error_count: int
    warning_count: int
    errors: List[str]
    remaining_errors: int
    warnings: List[str]
    has_errors: bool


class ImportValidation(BaseModel):
    valid_projects: List[Project] = []
    errors: List[str] = []
    warnings: List[str] = []
    rejected: List[RowValidation] = []

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self, limit: int = 10) -> ImportSummary:
        """First ``limit`` errors plus how many were left out."""
        return ImportSummary(
            valid_count=len(self.valid_projects),
            error_count=len(self.errors),
            warning_count=len(self.warnings),
            errors=self.errors[:limit],
            remaining_errors=max(len(self.errors) - limit, 0),
            warnings=self.warnings[:limit],
            has_errors=self.has_errors,
        )
