# File: sitetracker/core/errors.py

"""
Error taxonomy for the site tracker.

Per-row import problems are collected into a batch report rather than
raised. Single-record operations report failure through OperationResult;
the API layer raises the matching error below and the handlers in
sitetracker.main turn it into a response (400 / 409 / 404 / 401 / 502).
"""

from typing import List, Optional


class SiteTrackerError(Exception):
    """Base class for all site tracker errors."""


class ValidationError(SiteTrackerError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DuplicateKeyError(ValidationError):
    def __init__(self, site_code: str, errors: Optional[List[str]] = None):
        self.site_code = site_code
        super().__init__(errors or [f'Duplicate site code "{site_code}"'])


class NotFoundError(SiteTrackerError):
    def __init__(self, site_code: str):
        self.site_code = site_code
        self.errors = [f"Project not found: {site_code}"]
        super().__init__(self.errors[0])


class StorageCorruptionError(SiteTrackerError):
    """Stored blob could not be decoded into project records."""


class NetworkError(SiteTrackerError):
    """The auth backend could not be reached or answered unexpectedly."""


class UnauthorizedError(SiteTrackerError):
    """The auth backend rejected the session (HTTP 401)."""
