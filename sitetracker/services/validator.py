# File: sitetracker/services/validator.py

"""
Row validation for imported and manually entered projects.

Rules, applied in order to every row (a failure never stops the batch):

  1. required fields present and non-empty
  2. latitude / longitude are finite numbers within geographic range
  3. status is Done or Pending (case-insensitive)
  4. activation date normalized; unparseable text is only a warning
  5. site code not already taken (case-sensitive exact match)
"""

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional, Set

from sitetracker.schemas.imports import ImportValidation, RowValidation
from sitetracker.schemas.project import Project, ProjectStatus
from sitetracker.services.csv_io import CSV_COLUMNS
from sitetracker.services.sanitizer import sanitize_project

REQUIRED_FIELDS = (
    ("site_code", "Site Code"),
    ("project_name", "Project Name"),
    ("site_name", "Site Name"),
    ("latitude", "Latitude"),
    ("longitude", "Longitude"),
    ("status", "Status"),
)

COORDINATE_RANGES = {
    "latitude": ("Latitude", 90.0),
    "longitude": ("Longitude", 180.0),
}

DISPLAY_DATE_FORMAT = "%B %d, %Y"

# Tried in order; the first that parses wins
DATE_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%d %B, %Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%d-%b-%Y",
    "%d-%B-%Y",
    "%d-%b-%y",
    "%b-%d-%Y",
    "%Y%m%d",
)

# Spreadsheet day numbers between 1954 and 2119
EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_RANGE = (20000, 80000)

_ORDINAL_SUFFIX = re.compile(r"(?<=\d)(st|nd|rd|th)\b", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _key(name: str) -> str:
    return re.sub(r"[\s_]+", "", str(name)).casefold()


# Normalized column key -> project field. Accepts CSV header labels,
# camelCase storage names and snake_case field names.
FIELD_LOOKUP: Dict[str, str] = {}
for _label, _field in CSV_COLUMNS:
    FIELD_LOOKUP[_key(_label)] = _field
    FIELD_LOOKUP[_key(_field)] = _field
FIELD_LOOKUP[_key("activation date")] = "activation_date"


def normalize_date(value: Any) -> Optional[str]:
    """
    Return the date in display form (``April 30, 2024``), or None when the
    text matches none of the known layouts.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(DISPLAY_DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(DISPLAY_DATE_FORMAT)

    text = _WHITESPACE.sub(" ", str(value)).strip()
    if not text:
        return None
    text = _ORDINAL_SUFFIX.sub("", text)

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime(DISPLAY_DATE_FORMAT)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).strftime(DISPLAY_DATE_FORMAT)
    except ValueError:
        pass

    if re.fullmatch(r"\d+(\.0+)?", text):
        serial = int(float(text))
        low, high = EXCEL_SERIAL_RANGE
        if low <= serial <= high:
            return (EXCEL_EPOCH + timedelta(days=serial)).strftime(DISPLAY_DATE_FORMAT)

    return None


def normalize_status(value: Any) -> Optional[ProjectStatus]:
    text = str(value or "").strip().casefold()
    for status in ProjectStatus:
        if status.value.casefold() == text:
            return status
    return None


def extract_fields(row: Mapping[str, Any]) -> Dict[str, str]:
    """Map a CSV/form row onto project field names, trimming every value."""
    fields = {field: "" for _, field in CSV_COLUMNS}
    for key, value in row.items():
        if key is None:
            continue
        field = FIELD_LOOKUP.get(_key(key))
        if field is None:
            continue
        fields[field] = "" if value is None else str(value).strip()
    return fields


def _site_codes(existing_projects: Iterable) -> Set[str]:
    codes = set()
    for project in existing_projects:
        if isinstance(project, Project):
            codes.add(project.site_code)
        elif isinstance(project, Mapping):
            codes.add(str(project.get("siteCode") or project.get("site_code") or ""))
        else:
            codes.add(str(project))
    return codes


def _parse_coordinate(raw: str, field: str):
    label, limit = COORDINATE_RANGES[field]
    if not _DECIMAL.fullmatch(raw):
        return None, f'Invalid {label.lower()} "{raw}" (must be a number)'
    number = float(raw)
    if not math.isfinite(number) or not -limit <= number <= limit:
        return None, f'Invalid {label.lower()} "{raw}" (must be between {-limit:g} and {limit:g})'
    return number, None


def _check(row: Mapping[str, Any], row_index: Optional[int], existing_codes: Set[str]) -> RowValidation:
    prefix = f"Row {row_index}: " if row_index is not None else ""
    fields = extract_fields(row)
    errors = []
    warnings = []

    # 1. required
    for field, label in REQUIRED_FIELDS:
        if not fields[field]:
            errors.append(f"{prefix}Missing required field: {label}")

    # 2. coordinates
    coordinates = {}
    for field in COORDINATE_RANGES:
        if not fields[field]:
            continue
        number, error = _parse_coordinate(fields[field], field)
        if error:
            errors.append(prefix + error)
        else:
            coordinates[field] = number

    # 3. status
    status = None
    if fields["status"]:
        status = normalize_status(fields["status"])
        if status is None:
            errors.append(f'{prefix}Invalid status "{fields["status"]}" (must be Done or Pending)')

    # 4. activation date
    activation_date = fields["activation_date"]
    if activation_date:
        normalized = normalize_date(activation_date)
        if normalized is None:
            warnings.append(f'{prefix}Unrecognized activation date "{activation_date}", kept as entered')
        else:
            activation_date = normalized

    # 5. duplicates
    duplicate = bool(fields["site_code"]) and fields["site_code"] in existing_codes
    if duplicate:
        errors.append(f'{prefix}Duplicate site code "{fields["site_code"]}"')

    result = RowValidation(
        row_index=row_index,
        site_code=fields["site_code"],
        project_name=fields["project_name"],
        status=fields["status"],
        valid=not errors,
        duplicate=duplicate,
        errors=errors,
        warnings=warnings,
    )
    if not errors:
        result.project = Project(
            site_code=fields["site_code"],
            project_name=fields["project_name"],
            site_name=fields["site_name"],
            barangay=fields["barangay"],
            municipality=fields["municipality"],
            province=fields["province"],
            district=fields["district"],
            latitude=coordinates["latitude"],
            longitude=coordinates["longitude"],
            activation_date=activation_date,
            status=status,
            notes=fields["notes"],
        )
    return result


def validate_row(row: Mapping[str, Any], row_index: int, existing_projects: Iterable) -> RowValidation:
    """Validate one imported row against the schema rules and existing site codes."""
    return _check(row, row_index, _site_codes(existing_projects))


def validate_project(project, existing_projects: Iterable) -> RowValidation:
    """
    Same rules for a single record outside of a batch (manual entry,
    DataService.add_project). Messages carry no row prefix.
    """
    if isinstance(project, Project):
        project = project.model_dump(mode="json")
    elif hasattr(project, "model_dump"):
        project = project.model_dump(exclude_none=True)
    return _check(project, None, _site_codes(existing_projects))


def validate_rows(rows: Iterable[Mapping[str, Any]], existing_projects: Iterable) -> ImportValidation:
    """
    Validate every row of an import. Accepted rows are sanitized and their
    site codes count as taken for the rest of the file, so a code repeated
    within the same file is rejected after its first occurrence.
    """
    existing_codes = _site_codes(existing_projects)
    result = ImportValidation()

    for index, row in enumerate(rows):
        validation = _check(row, index, existing_codes)
        if validation.valid:
            result.valid_projects.append(sanitize_project(validation.project))
            existing_codes.add(validation.project.site_code)
        else:
            result.errors.extend(validation.errors)
            result.rejected.append(validation)
        result.warnings.extend(validation.warnings)

    return result
