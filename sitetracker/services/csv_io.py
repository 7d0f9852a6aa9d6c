# File: sitetracker/services/csv_io.py

"""
CSV layout shared by import, export and the downloadable template.
"""

import csv
import io
from typing import Dict, Iterable, List, Sequence, Tuple

# (header label, project field) in template column order
CSV_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("Site Code", "site_code"),
    ("Project Name", "project_name"),
    ("Site Name", "site_name"),
    ("Barangay", "barangay"),
    ("Municipality", "municipality"),
    ("Province", "province"),
    ("District", "district"),
    ("Latitude", "latitude"),
    ("Longitude", "longitude"),
    ("Date of Activation", "activation_date"),
    ("Status", "status"),
    ("Notes", "notes"),
)

CSV_HEADER: List[str] = [label for label, _ in CSV_COLUMNS]

TEMPLATE_EXAMPLE_ROW: List[str] = [
    "EXAMPLE-001",
    "Free-WIFI for All",
    "Sample Barangay Hall",
    "Sample Barangay",
    "Sample Municipality",
    "Batanes",
    "District I",
    "20.728794",
    "121.804235",
    "April 30, 2024",
    "Done",
    "",
]

TEMPLATE_FILENAME = "project_template.csv"


class CSVParseError(ValueError):
    pass


def parse_csv(content) -> List[Dict[str, str]]:
    """
    Parse CSV text (or UTF-8 bytes) with a header row into dicts.

    Blank lines are skipped; a UTF-8 BOM is tolerated. Columns are kept
    under their header labels, so extra or missing columns are left for
    the validator to deal with.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CSVParseError(f"File is not valid UTF-8 text: {e}") from e
    content = content.lstrip("\ufeff")

    try:
        reader = csv.DictReader(io.StringIO(content), skipinitialspace=True)
        if not reader.fieldnames:
            raise CSVParseError("CSV file has no header row")
        rows = []
        for raw in reader:
            # DictReader yields None-keyed overflow and None values for short rows
            row = {
                key.strip(): (value or "")
                for key, value in raw.items()
                if key is not None and isinstance(value, (str, type(None)))
            }
            if not any(str(v).strip() for v in row.values()):
                continue
            rows.append(row)
        return rows
    except csv.Error as e:
        raise CSVParseError(str(e)) from e


def write_csv(header: Sequence[str], rows: Iterable[Sequence]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def template_csv() -> str:
    return write_csv(CSV_HEADER, [TEMPLATE_EXAMPLE_ROW])
