# File: tests/test_data_service.py

import csv
import io
import json

from sitetracker.db.init_db import SEED_PROJECTS
from sitetracker.schemas.project import FailureReason
from sitetracker.services.csv_io import CSV_HEADER
from sitetracker.services.data_service import DataService
from sitetracker.services.validator import validate_rows

from conftest import project_row


def form(site_code="NEW-001", **overrides):
    values = {
        "siteCode": site_code,
        "projectName": "Free-WIFI for All",
        "siteName": "Sample Hall",
        "province": "Batanes",
        "latitude": 20.1,
        "longitude": 121.1,
        "activationDate": "2024-05-08",
        "status": "pending",
    }
    values.update(overrides)
    return values


def test_first_run_seeds_and_persists(data, storage):
    assert len(data.get_all_projects()) == len(SEED_PROJECTS)
    stored = json.loads(storage.get_item("projects"))
    assert [p["siteCode"] for p in stored] == [p["siteCode"] for p in SEED_PROJECTS]


def test_reload_reads_stored_list_not_seed(data, storage):
    data.delete_project("UNDP-GI-0009A")
    reloaded = DataService(storage, "projects", seed=SEED_PROJECTS)
    reloaded.init()
    assert len(reloaded.get_all_projects()) == len(SEED_PROJECTS) - 1
    assert reloaded.get_project("UNDP-GI-0009A") is None


def test_corrupt_storage_falls_back_to_seed(storage):
    storage.set_item("projects", "{not json")
    service = DataService(storage, "projects", seed=SEED_PROJECTS)
    service.init()
    assert len(service.get_all_projects()) == len(SEED_PROJECTS)
    # the repaired list is written back
    assert json.loads(storage.get_item("projects"))[0]["siteCode"] == "UNDP-GI-0009A"


def test_records_failing_schema_count_as_corruption(storage):
    storage.set_item("projects", json.dumps([{"siteCode": "X", "latitude": 500}]))
    service = DataService(storage, "projects", seed=[])
    service.init()
    assert service.get_all_projects() == []


def test_add_project_appends_and_persists(empty_data, storage):
    result = empty_data.add_project(form())
    assert result.success
    assert result.errors == []

    project = empty_data.get_project("NEW-001")
    assert project.activation_date == "May 08, 2024"
    assert project.status.value == "Pending"
    assert json.loads(storage.get_item("projects"))[0]["siteCode"] == "NEW-001"


def test_add_project_rejects_duplicate_and_invalid(data):
    before = data.get_all_projects()

    duplicate = data.add_project(form("UNDP-GI-0009A"))
    assert not duplicate.success
    assert any("Duplicate" in e for e in duplicate.errors)

    invalid = data.add_project(form("NEW-2", latitude="95"))
    assert not invalid.success
    assert any("latitude" in e for e in invalid.errors)

    assert data.get_all_projects() == before


def test_delete_missing_leaves_collection_unchanged(data):
    before = data.get_all_projects()
    result = data.delete_project("NOPE")
    assert not result.success
    assert result.errors == ["Project not found: NOPE"]
    assert data.get_all_projects() == before
    assert result.reason == FailureReason.NOT_FOUND
    assert result.site_code == "NOPE"


def test_delete_removes_record(data):
    result = data.delete_project("CYBER-1231231")
    assert result.success
    assert data.get_project("CYBER-1231231") is None
    assert len(data.get_all_projects()) == len(SEED_PROJECTS) - 1


def test_replace_keeps_position(data):
    codes = [p.site_code for p in data.get_all_projects()]
    result = data.replace_project("UNDP-GI-0010A", form("UNDP-GI-0010A", status="Done"))
    assert result.success
    assert [p.site_code for p in data.get_all_projects()] == codes
    replaced = data.get_project("UNDP-GI-0010A")
    assert replaced.site_name == "Sample Hall"
    assert replaced.notes == ""


def test_replace_cannot_take_another_records_code(data):
    result = data.replace_project("UNDP-GI-0010A", form("UNDP-GI-0009A"))
    assert not result.success
    assert any("Duplicate" in e for e in result.errors)
    assert result.reason == FailureReason.DUPLICATE


def test_replace_missing_is_not_found(data):
    result = data.replace_project("NOPE", form("NOPE"))
    assert result.errors == ["Project not found: NOPE"]


def test_get_all_projects_returns_copies(data):
    projects = data.get_all_projects()
    projects[0].site_name = "changed"
    projects.clear()
    assert data.get_all_projects()[0].site_name == "Raele Barangay Hall - AP 1"


def test_import_appends_in_file_order_after_existing(data):
    rows = [project_row(f"IMP-{i}") for i in range(4)]
    validation = validate_rows(rows, data.get_all_projects())

    added = data.import_projects(validation.valid_projects)

    codes = [p.site_code for p in data.get_all_projects()]
    assert added == 4
    assert codes[: len(SEED_PROJECTS)] == [p["siteCode"] for p in SEED_PROJECTS]
    assert codes[len(SEED_PROJECTS):] == ["IMP-0", "IMP-1", "IMP-2", "IMP-3"]


def test_import_skips_codes_taken_since_validation(empty_data):
    validation = validate_rows([project_row("A"), project_row("B")], [])
    empty_data.add_project(form("A"))
    assert empty_data.import_projects(validation.valid_projects) == 1


def test_recent_projects_newest_first(data):
    data.add_project(form("LATEST"))
    recent = data.get_recent_projects(3)
    assert [p.site_code for p in recent] == ["LATEST", "eLGU-1231231", "IIDB-1231231"]


def test_search_and_status_filter(data):
    assert [p.site_code for p in data.search_projects(status="Pending")] == ["eLGU-1231231"]
    assert len(data.search_projects("ivana")) == 2
    assert len(data.search_projects("iguig", status="done")) == 2


def test_stats(data):
    stats = data.get_stats()
    assert stats.total == 10
    assert stats.done == 9
    assert stats.pending == 1
    assert stats.completion_rate == 90.0
    assert stats.by_province == {"Batanes": 7, "Cagayan": 3}


def test_export_csv_has_template_header_and_plain_text(empty_data):
    empty_data.add_project(form("E1", notes="Fiber & <b>power</b>"))
    rows = list(csv.reader(io.StringIO(empty_data.export_csv())))
    assert rows[0] == CSV_HEADER
    assert rows[1][0] == "E1"
    assert rows[1][-1] == "Fiber & <b>power</b>"
    assert rows[1][-2] == "Pending"


def test_invalid_record_with_taken_code_is_reported_as_invalid(data):
    result = data.add_project(form("UNDP-GI-0009A", latitude="north"))
    assert result.reason == FailureReason.INVALID
    assert len(result.errors) == 2


def test_export_restores_unparsed_activation_date(empty_data):
    empty_data.add_project(form("E2", activationDate="Q3 & later"))
    assert empty_data.get_project("E2").activation_date == "Q3 &amp; later"
    rows = list(csv.reader(io.StringIO(empty_data.export_csv())))
    assert rows[1][9] == "Q3 & later"
