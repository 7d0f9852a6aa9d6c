# File: sitetracker/schemas/project.py

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ProjectStatus(str, Enum):
    DONE = "Done"
    PENDING = "Pending"


class Project(BaseModel):
    """
    A rollout site. Serialized with camelCase keys (``siteCode``,
    ``activationDate``...) which is the layout of the stored blob.
    """

    site_code: str = Field(min_length=1)
    project_name: str
    site_name: str
    barangay: str = ""
    municipality: str = ""
    province: str = ""
    district: str = ""
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)
    activation_date: str = ""
    status: ProjectStatus
    notes: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ProjectForm(BaseModel):
    """
    Raw manual-entry payload. Everything is optional and loosely typed;
    the validator decides what is acceptable and reports why.
    """

    site_code: Optional[str] = None
    project_name: Optional[str] = None
    site_name: Optional[str] = None
    barangay: Optional[str] = None
    municipality: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[Union[float, str]] = None
    longitude: Optional[Union[float, str]] = None
    activation_date: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class FailureReason(str, Enum):
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"


class OperationResult(BaseModel):
    success: bool
    errors: List[str] = []
    reason: Optional[FailureReason] = None
    site_code: Optional[str] = None


class ProjectStats(BaseModel):
    total: int
    done: int
    pending: int
    completion_rate: float
    by_province: Dict[str, int]
