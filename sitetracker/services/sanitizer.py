# File: sitetracker/services/sanitizer.py

"""
Escaping of free-text fields before they are stored or rendered as markup.
"""

import html

from sitetracker.schemas.project import Project

# Free-text fields that end up inside HTML on the dashboard
TEXT_FIELDS = (
    "project_name",
    "site_name",
    "barangay",
    "municipality",
    "province",
    "district",
    "notes",
)

# Stored escaped and unescaped again on export
ESCAPED_FIELDS = TEXT_FIELDS + ("activation_date",)


def sanitize_html(text) -> str:
    """
    Escape ``& < > " '``.

    Input is unescaped once first, so text that already went through this
    function comes back unchanged instead of double-escaped.
    """
    if text is None:
        return ""
    return html.escape(html.unescape(str(text)), quote=True)


def unescape_html(text: str) -> str:
    return html.unescape(text or "")


def sanitize_project(project: Project) -> Project:
    updates = {field: sanitize_html(getattr(project, field)).strip() for field in ESCAPED_FIELDS}
    updates["site_code"] = project.site_code.strip()
    return project.model_copy(update=updates)
