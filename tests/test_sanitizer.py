# File: tests/test_sanitizer.py

from sitetracker.schemas.project import Project, ProjectStatus
from sitetracker.services.sanitizer import sanitize_html, sanitize_project


def make_project(**overrides):
    values = dict(
        site_code=" S-1 ",
        project_name="Free-WIFI for All",
        site_name="  Raele Barangay Hall  ",
        latitude=20.5,
        longitude=121.5,
        status=ProjectStatus.PENDING,
        notes="<script>alert('x')</script>",
    )
    values.update(overrides)
    return Project(**values)


def test_sanitize_html_escapes_five_metacharacters():
    assert sanitize_html("""<a href="x">Tom & 'Jerry'</a>""") == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; &#x27;Jerry&#x27;&lt;/a&gt;"
    )


def test_sanitize_html_is_idempotent():
    once = sanitize_html("<b>R&D</b>")
    assert sanitize_html(once) == once


def test_sanitize_html_handles_none():
    assert sanitize_html(None) == ""


def test_sanitize_project_neutralizes_script_in_notes():
    cleaned = sanitize_project(make_project())
    assert "<" not in cleaned.notes
    assert ">" not in cleaned.notes
    assert cleaned.notes.startswith("&lt;script&gt;")


def test_sanitize_project_twice_equals_once():
    once = sanitize_project(make_project())
    twice = sanitize_project(once)
    assert twice == once


def test_sanitize_project_trims_text_and_leaves_numbers_alone():
    cleaned = sanitize_project(make_project())
    assert cleaned.site_name == "Raele Barangay Hall"
    assert cleaned.site_code == "S-1"
    assert cleaned.latitude == 20.5
    assert cleaned.longitude == 121.5
    assert cleaned.status == ProjectStatus.PENDING


def test_unparsed_activation_date_is_escaped():
    cleaned = sanitize_project(make_project(activation_date=" <b>after typhoon</b> "))
    assert cleaned.activation_date == "&lt;b&gt;after typhoon&lt;/b&gt;"


def test_normalized_activation_date_is_unchanged():
    assert sanitize_project(make_project(activation_date="April 30, 2024")).activation_date == "April 30, 2024"
