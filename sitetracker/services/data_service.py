# File: sitetracker/services/data_service.py

"""
DataService: owns the project list.

The list lives in memory in insertion order and is written back to the
key-value store as a single JSON blob after every mutation. It is the only
writer of that blob.
"""

import json
import logging
from collections import Counter
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as SchemaError

from sitetracker.core.errors import StorageCorruptionError
from sitetracker.db.storage import KeyValueStorage
from sitetracker.schemas.imports import RowValidation
from sitetracker.schemas.project import (
    FailureReason,
    OperationResult,
    Project,
    ProjectForm,
    ProjectStats,
    ProjectStatus,
)
from sitetracker.services.csv_io import CSV_COLUMNS, CSV_HEADER, write_csv
from sitetracker.services.sanitizer import ESCAPED_FIELDS, sanitize_project, unescape_html
from sitetracker.services.validator import validate_project

logger = logging.getLogger(__name__)

ProjectInput = Union[Project, ProjectForm, Mapping[str, Any]]

SEARCH_FIELDS = ("site_code", "project_name", "site_name", "barangay", "municipality", "province", "district")


class DataService:
    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = "projects",
        seed: Optional[Sequence[Mapping[str, Any]]] = None,
    ):
        self.storage = storage
        self.storage_key = storage_key
        self._seed = list(seed or [])
        self.projects: List[Project] = []

    # -----------------------------
    # Persistence
    # -----------------------------

    def init(self) -> None:
        """Load the stored list, seeding it on first run."""
        self.load_from_storage()

    def save_to_storage(self) -> None:
        blob = json.dumps([p.model_dump(mode="json", by_alias=True) for p in self.projects])
        self.storage.set_item(self.storage_key, blob)

    def _decode(self, blob: str) -> List[Project]:
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            raise StorageCorruptionError(f"Stored projects are not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise StorageCorruptionError("Stored projects are not a list")
        try:
            return [Project.model_validate(item) for item in data]
        except SchemaError as e:
            raise StorageCorruptionError(f"Stored project failed schema check: {e}") from e

    def _seed_projects(self) -> List[Project]:
        return [sanitize_project(Project.model_validate(item)) for item in self._seed]

    def load_from_storage(self) -> List[Project]:
        blob = self.storage.get_item(self.storage_key)
        if blob is None:
            self.projects = self._seed_projects()
            self.save_to_storage()
            logger.info("[DATA] No stored projects, seeded %d records", len(self.projects))
            return self.get_all_projects()

        try:
            self.projects = self._decode(blob)
            logger.info("[DATA] Loaded %d projects from storage", len(self.projects))
        except StorageCorruptionError as e:
            logger.error("[DATA] %s; falling back to seed data", e)
            self.projects = self._seed_projects()
            self.save_to_storage()
        return self.get_all_projects()

    # -----------------------------
    # Reads
    # -----------------------------

    def get_all_projects(self) -> List[Project]:
        return [p.model_copy() for p in self.projects]

    def get_project(self, site_code: str) -> Optional[Project]:
        index = self._index_of(site_code)
        return self.projects[index].model_copy() if index is not None else None

    def get_recent_projects(self, limit: int = 5) -> List[Project]:
        """Most recently added first."""
        if limit <= 0:
            return []
        return [p.model_copy() for p in reversed(self.projects[-limit:])]

    def search_projects(self, query: str = "", status: str = "all") -> List[Project]:
        needle = (query or "").strip().casefold()
        wanted = None if (status or "all").lower() == "all" else status
        results = []
        for project in self.projects:
            if wanted is not None and project.status.value.lower() != wanted.lower():
                continue
            if needle:
                haystack = " ".join(unescape_html(str(getattr(project, f))) for f in SEARCH_FIELDS).casefold()
                if needle not in haystack:
                    continue
            results.append(project.model_copy())
        return results

    def get_stats(self) -> ProjectStats:
        total = len(self.projects)
        done = sum(1 for p in self.projects if p.status == ProjectStatus.DONE)
        provinces = Counter(unescape_html(p.province) or "Unspecified" for p in self.projects)
        return ProjectStats(
            total=total,
            done=done,
            pending=total - done,
            completion_rate=round(done / total * 100, 1) if total else 0.0,
            by_province=dict(sorted(provinces.items())),
        )

    # -----------------------------
    # Mutations
    # -----------------------------

    def _index_of(self, site_code: str) -> Optional[int]:
        for i, project in enumerate(self.projects):
            if project.site_code == site_code:
                return i
        return None

    @staticmethod
    def _rejected(validation: RowValidation) -> OperationResult:
        duplicate_only = validation.duplicate and len(validation.errors) == 1
        return OperationResult(
            success=False,
            errors=validation.errors,
            reason=FailureReason.DUPLICATE if duplicate_only else FailureReason.INVALID,
            site_code=validation.site_code,
        )

    @staticmethod
    def _not_found(site_code: str) -> OperationResult:
        return OperationResult(
            success=False,
            errors=[f"Project not found: {site_code}"],
            reason=FailureReason.NOT_FOUND,
            site_code=site_code,
        )

    def add_project(self, project: ProjectInput) -> OperationResult:
        validation = validate_project(project, self.projects)
        if not validation.valid:
            return self._rejected(validation)

        self.projects.append(sanitize_project(validation.project))
        self.save_to_storage()
        logger.info("[DATA] Added project %s", validation.project.site_code)
        return OperationResult(success=True)

    def replace_project(self, site_code: str, project: ProjectInput) -> OperationResult:
        index = self._index_of(site_code)
        if index is None:
            return self._not_found(site_code)

        others = self.projects[:index] + self.projects[index + 1:]
        validation = validate_project(project, others)
        if not validation.valid:
            return self._rejected(validation)

        self.projects[index] = sanitize_project(validation.project)
        self.save_to_storage()
        logger.info("[DATA] Replaced project %s", site_code)
        return OperationResult(success=True)

    def delete_project(self, site_code: str) -> OperationResult:
        index = self._index_of(site_code)
        if index is None:
            return self._not_found(site_code)

        del self.projects[index]
        self.save_to_storage()
        logger.info("[DATA] Deleted project %s", site_code)
        return OperationResult(success=True)

    def import_projects(self, projects: Iterable[Project]) -> int:
        """
        Append an already validated batch in order and persist once.
        Codes that became taken since validation are skipped.
        """
        taken = {p.site_code for p in self.projects}
        added = 0
        for project in projects:
            if project.site_code in taken:
                logger.warning("[DATA] Skipping %s on import, site code already exists", project.site_code)
                continue
            self.projects.append(project)
            taken.add(project.site_code)
            added += 1
        if added:
            self.save_to_storage()
        logger.info("[DATA] Imported %d projects", added)
        return added

    # -----------------------------
    # Export
    # -----------------------------

    def export_csv(self) -> str:
        rows = []
        for project in self.projects:
            values = project.model_dump(mode="json")
            row = []
            for _, field in CSV_COLUMNS:
                value = values[field]
                row.append(unescape_html(value) if field in ESCAPED_FIELDS else value)
            rows.append(row)
        return write_csv(CSV_HEADER, rows)
