# File: sitetracker/services/dashboard.py

"""
Dashboard orchestrator.

Drives the user-facing workflows (manual entry, CSV import in two steps,
downloads, delete) on top of DataService, and reports outcomes through the
UI port. The pending import lives here between the upload and the commit.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import PurePath
from typing import Any, List, Mapping, Optional

from sitetracker.schemas.imports import ImportValidation, RowValidation
from sitetracker.schemas.project import OperationResult, Project
from sitetracker.services.csv_io import TEMPLATE_FILENAME, CSVParseError, parse_csv, template_csv, write_csv
from sitetracker.services.data_service import DataService
from sitetracker.services.ui_port import UIPort
from sitetracker.services.validator import validate_rows

logger = logging.getLogger(__name__)

ACCEPTED_UPLOAD_SUFFIXES = (".csv",)
ERROR_REPORT_HEADER = ["Row", "Site Code", "Project Name", "Status", "Error"]


@dataclass
class Download:
    filename: str
    content: str
    media_type: str = "text/csv; charset=utf-8"


class Dashboard:
    def __init__(self, data: DataService, ui: UIPort, error_display_limit: int = 10):
        self.data = data
        self.ui = ui
        self.error_display_limit = error_display_limit
        self.pending_import: List[Project] = []
        self.rejected_rows: List[RowValidation] = []
        self.last_validation: Optional[ImportValidation] = None
        self.upload_error: Optional[str] = None

    def refresh_all(self) -> None:
        self.ui.render(self.data.get_all_projects())

    # -----------------------------
    # CSV import
    # -----------------------------

    def handle_file_upload(self, filename: str, content) -> Optional[ImportValidation]:
        """
        Parse and validate an uploaded file. Nothing is stored yet; the
        accepted rows wait for import_validated_data().
        """
        if PurePath(filename or "").suffix.lower() not in ACCEPTED_UPLOAD_SUFFIXES:
            return self._reject_upload("Please upload a valid CSV file")

        try:
            rows = parse_csv(content)
        except CSVParseError as e:
            logger.error("[IMPORT] Error parsing CSV %s: %s", filename, e)
            return self._reject_upload("Failed to parse CSV file")

        self.upload_error = None
        validation = validate_rows(rows, self.data.get_all_projects())
        self.pending_import = list(validation.valid_projects)
        self.rejected_rows = list(validation.rejected)
        self.last_validation = validation
        logger.info(
            "[IMPORT] %s: %d rows, %d valid, %d errors, %d warnings",
            filename,
            len(rows),
            len(validation.valid_projects),
            len(validation.errors),
            len(validation.warnings),
        )
        return validation

    def _reject_upload(self, message: str) -> None:
        self.upload_error = message
        self.ui.show_error(message)
        return None

    def import_validated_data(self) -> int:
        if not self.pending_import:
            self.ui.show_error("No valid data to import")
            return 0

        imported = self.data.import_projects(self.pending_import)
        self.pending_import = []
        self.refresh_all()
        self.ui.show_success(f"{imported} projects imported successfully!")
        return imported

    # -----------------------------
    # Downloads
    # -----------------------------

    def download_error_report(self, today: Optional[date] = None) -> Optional[Download]:
        if not self.rejected_rows:
            self.ui.show_error("No error report to download")
            return None

        rows = []
        for rejected in self.rejected_rows:
            for error in rejected.errors:
                rows.append([rejected.row_index, rejected.site_code, rejected.project_name, rejected.status, error])
        today = today or date.today()
        return Download(
            filename=f"error_report_{today.isoformat()}.csv",
            content=write_csv(ERROR_REPORT_HEADER, rows),
        )

    def download_template(self) -> Download:
        return Download(filename=TEMPLATE_FILENAME, content=template_csv())

    def export_projects(self, today: Optional[date] = None) -> Download:
        today = today or date.today()
        download = Download(
            filename=f"projects_export_{today.isoformat()}.csv",
            content=self.data.export_csv(),
        )
        self.ui.show_success("Data exported successfully!")
        return download

    # -----------------------------
    # Manual entry / single records
    # -----------------------------

    def handle_manual_entry(self, form: Mapping[str, Any]) -> OperationResult:
        result = self.data.add_project(form)
        if result.success:
            self.refresh_all()
            self.ui.show_success("Project added successfully!")
        else:
            self.ui.show_error(", ".join(result.errors))
        return result

    def replace_project(self, site_code: str, form: Mapping[str, Any]) -> OperationResult:
        result = self.data.replace_project(site_code, form)
        if result.success:
            self.refresh_all()
            self.ui.show_success("Project updated successfully!")
        else:
            self.ui.show_error(", ".join(result.errors))
        return result

    def delete_project(self, site_code: str) -> OperationResult:
        result = self.data.delete_project(site_code)
        if result.success:
            self.refresh_all()
            self.ui.show_success("Project deleted successfully!")
        else:
            self.ui.show_error(", ".join(result.errors))
        return result

    def view_project(self, site_code: str) -> Optional[Project]:
        return self.data.get_project(site_code)
